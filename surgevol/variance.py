"""Variance swap markets: mint long or short tokens and settle on realized variance."""

from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from surgevol.accounts import Market, Mint, TokenAccount, burn, mint_to, transfer
from surgevol.errors import VarianceError, VarianceErrorCode
from surgevol.oracle import read_annualized_volatility

U64_MAX = 2**64 - 1
_U128_MAX = 2**128 - 1


@dataclass(frozen=True)
class MarketInitialized:
    """Event emitted when a market is created."""

    market: bytes
    authority: bytes
    usdc_vault: bytes
    var_long_mint: bytes
    var_short_mint: bytes
    epoch: int
    strike: float
    timestamp: int
    start_volatility: float


@dataclass(frozen=True)
class TokensMinted:
    """Event emitted after a deposit mints long or short tokens."""

    market: bytes
    user: bytes
    amount: int
    is_long: bool
    total_deposits: int


@dataclass(frozen=True)
class MarketRedeemed:
    """Event emitted when a market settles."""

    market: bytes
    user: bytes
    realized_variance: float
    strike: float
    long_payout: int
    short_payout: int
    total_deposits: int


@contextmanager
def _atomic(records: list[object]) -> Iterator[None]:
    """Restore every record's fields if the block raises."""
    saved = [(record, dict(vars(record))) for record in records]
    try:
        yield
    except BaseException:
        for record, state in saved:
            vars(record).clear()
            vars(record).update(state)
        raise


def _fail(code: VarianceErrorCode) -> VarianceError:
    return VarianceError(code)


def _to_u128(value: float) -> int:
    """Convert a float the way a saturating cast to u128 does."""
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U128_MAX:
        return _U128_MAX
    return int(value)


@dataclass
class MintTokens:
    """Accounts taking part in a deposit."""

    market: Market
    user_authority: bytes
    user_usdc: TokenAccount
    usdc_vault: TokenAccount
    var_long_mint: Mint
    var_short_mint: Mint
    user_var_long: TokenAccount
    user_var_short: TokenAccount

    def records(self) -> list[object]:
        """The mutable account records."""
        return [
            self.market,
            self.user_usdc,
            self.usdc_vault,
            self.var_long_mint,
            self.var_short_mint,
            self.user_var_long,
            self.user_var_short,
        ]


def mint_tokens(accounts: MintTokens, amount: int, is_long: bool) -> TokensMinted:
    """Deposit amount USDC into the vault and mint as many long or short tokens."""
    market = accounts.market
    if market.is_expired:
        raise _fail(VarianceErrorCode.MARKET_EXPIRED)

    with _atomic(accounts.records()):
        transfer(accounts.user_usdc, accounts.usdc_vault, accounts.user_authority, amount)
        if is_long:
            mint_to(accounts.var_long_mint, accounts.user_var_long, amount)
        else:
            mint_to(accounts.var_short_mint, accounts.user_var_short, amount)

        total = market.total_deposits + amount
        if total > U64_MAX:
            raise _fail(VarianceErrorCode.NUMBER_OVERFLOW)
        market.total_deposits = total

    return TokensMinted(
        market=market.key,
        user=accounts.user_authority,
        amount=amount,
        is_long=is_long,
        total_deposits=market.total_deposits,
    )


@dataclass
class Redeem:
    """Accounts taking part in settling a market."""

    market: Market
    user_authority: bytes
    user_usdc: TokenAccount
    usdc_vault: TokenAccount
    var_long_mint: Mint
    var_short_mint: Mint
    user_var_long: TokenAccount
    user_var_short: TokenAccount
    volatility_stats: bytes

    def records(self) -> list[object]:
        """The mutable account records."""
        return [
            self.market,
            self.user_usdc,
            self.usdc_vault,
            self.var_long_mint,
            self.var_short_mint,
            self.user_var_long,
            self.user_var_short,
        ]


def redeem(accounts: Redeem) -> MarketRedeemed:
    """Settle the market on the oracle's volatility, pay out and burn the tokens."""
    market = accounts.market
    if market.is_expired:
        raise _fail(VarianceErrorCode.MARKET_EXPIRED)

    annualized_volatility = read_annualized_volatility(accounts.volatility_stats)
    realized_variance = annualized_volatility * 100.0 - market.start_volatility * 100.0
    if realized_variance < 0.0:
        raise _fail(VarianceErrorCode.NUMBER_OVERFLOW)

    with _atomic(accounts.records()):
        market.realized_variance = realized_variance
        market.is_expired = True

        total_supply = market.total_deposits
        strike = market.strike

        if realized_variance > strike:
            long_payout = _to_u128((realized_variance - strike) * float(total_supply) / 100.0)
        else:
            long_payout = 0
        if long_payout > U64_MAX:
            raise _fail(VarianceErrorCode.NUMBER_OVERFLOW)
        if long_payout > total_supply:
            raise _fail(VarianceErrorCode.NUMBER_OVERFLOW)
        short_payout = total_supply - long_payout

        if long_payout > 0:
            transfer(accounts.usdc_vault, accounts.user_usdc, market.key, long_payout)
        if short_payout > 0:
            transfer(accounts.usdc_vault, accounts.user_usdc, market.key, short_payout)

        burn(
            accounts.var_long_mint,
            accounts.user_var_long,
            accounts.user_authority,
            accounts.user_var_long.amount,
        )
        burn(
            accounts.var_short_mint,
            accounts.user_var_short,
            accounts.user_authority,
            accounts.user_var_short.amount,
        )

    return MarketRedeemed(
        market=market.key,
        user=accounts.user_authority,
        realized_variance=realized_variance,
        strike=strike,
        long_payout=long_payout,
        short_payout=short_payout,
        total_deposits=total_supply,
    )