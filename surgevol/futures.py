"""Volatility futures: redeem position tokens against the oracle's volatility."""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass, fields, is_dataclass
from typing import Iterator

from surgevol.accounts import Mint, TokenAccount, TokenConfig, UserPosition, burn, transfer
from surgevol.errors import ContractError, ContractErrorCode, InvalidAccountData
from surgevol.oracle import read_annualized_volatility

logger = logging.getLogger(__name__)

U64_MAX = 2**64 - 1
MAX_FEE_BPS = 10_000
VOL_SCALE = 1000


def _overflow() -> ContractError:
    return ContractError(ContractErrorCode.MATH_OVERFLOW)


def _checked_mul(a: int, b: int) -> int:
    product = a * b
    if product > U64_MAX:
        raise _overflow()
    return product


def _checked_add(a: int, b: int) -> int:
    total = a + b
    if total > U64_MAX:
        raise _overflow()
    return total


def _checked_sub(a: int, b: int) -> int:
    if b > a:
        raise _overflow()
    return a - b


def _to_u64(value: float) -> int:
    """Convert a float the way a saturating cast to u64 does."""
    if math.isnan(value) or value <= 0:
        return 0
    if value >= U64_MAX:
        return U64_MAX
    return int(value)


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


def _require(condition: bool, code: ContractErrorCode) -> None:
    if not condition:
        raise ContractError(code)


def calculate_redemption_value(
    amount: int,
    entry_vol_points: int,
    current_vol_points: int,
    usdc_per_vol: int,
) -> int:
    """USDC owed for amount tokens bought at entry and redeemed at current volatility."""
    base_value = _checked_mul(_checked_mul(amount, entry_vol_points), usdc_per_vol) // VOL_SCALE

    if current_vol_points == entry_vol_points:
        return base_value

    per_vol_point = _checked_mul(usdc_per_vol, amount)
    if current_vol_points > entry_vol_points:
        profit = _checked_mul(per_vol_point, current_vol_points - entry_vol_points) // VOL_SCALE
        return _checked_add(base_value, profit)

    loss = _checked_mul(per_vol_point, entry_vol_points - current_vol_points) // VOL_SCALE
    if loss >= base_value:
        # Never redeem for nothing.
        return 1
    return base_value - loss


@dataclass
class RedeemTokens:
    """Accounts taking part in a redemption."""

    user: bytes
    user_usdc_account: TokenAccount
    user_token_account: TokenAccount
    fee_destination: TokenAccount
    collateral_pool: TokenAccount
    token_mint: Mint
    token_config: TokenConfig
    user_position: UserPosition
    oracle: bytes

    def validate(self) -> None:
        """Check the account constraints, in declaration order."""
        config = self.token_config
        Code = ContractErrorCode
        _require(self.user_usdc_account.owner == self.user, Code.UNAUTHORIZED)
        _require(self.user_usdc_account.mint == config.usdc_mint, Code.INVALID_ORACLE_DATA)
        _require(self.user_token_account.owner == self.user, Code.UNAUTHORIZED)
        _require(self.user_token_account.mint == self.token_mint.key, Code.INVALID_ORACLE_DATA)
        _require(self.fee_destination.key == config.fee_destination, Code.UNAUTHORIZED)
        _require(self.collateral_pool.key == config.collateral_pool, Code.UNAUTHORIZED)
        _require(self.collateral_pool.mint == config.usdc_mint, Code.INVALID_ORACLE_DATA)
        _require(self.token_mint.key == config.token_mint, Code.INVALID_ORACLE_DATA)
        _require(self.user_position.owner == self.user, Code.UNAUTHORIZED)

    def records(self) -> list[object]:
        """The mutable account records."""
        return [
            getattr(self, f.name) for f in fields(self) if is_dataclass(getattr(self, f.name))
        ]


def _current_volatility(oracle: bytes) -> float:
    try:
        return read_annualized_volatility(oracle)
    except InvalidAccountData as exc:
        raise ContractError(ContractErrorCode.INVALID_ORACLE_DATA) from exc


def redeem_tokens(accounts: RedeemTokens, amount: int) -> None:
    """Burn amount position tokens and pay their USDC value out of the pool."""
    accounts.validate()
    _require(amount > 0, ContractErrorCode.INVALID_AMOUNT)
    _require(accounts.user_token_account.amount >= amount, ContractErrorCode.INSUFFICIENT_TOKENS)
    position = accounts.user_position
    config = accounts.token_config
    _require(position.tokens_minted >= amount, ContractErrorCode.INSUFFICIENT_TOKENS)

    current_volatility = _current_volatility(accounts.oracle)
    entry_volatility = position.entry_volatility
    logger.info("Entry volatility: %s", entry_volatility)
    logger.info("Current volatility: %s", current_volatility)

    redemption_value = calculate_redemption_value(
        amount,
        _to_u64(entry_volatility * VOL_SCALE),
        _to_u64(current_volatility * VOL_SCALE),
        config.usdc_per_vol_point,
    )
    logger.info("Redemption value: %s", redemption_value)

    fee_amount = _checked_mul(redemption_value, config.fee_bps) // MAX_FEE_BPS
    logger.info("Fee amount: %s", fee_amount)
    final_amount = _checked_sub(redemption_value, fee_amount)

    _require(
        accounts.collateral_pool.amount >= final_amount,
        ContractErrorCode.INSUFFICIENT_BALANCE,
    )

    with _atomic(accounts.records()):
        burn(accounts.token_mint, accounts.user_token_account, accounts.user, amount)
        if fee_amount > 0:
            transfer(accounts.collateral_pool, accounts.fee_destination, config.key, fee_amount)
        transfer(accounts.collateral_pool, accounts.user_usdc_account, config.key, final_amount)

        config.total_tokens_outstanding = _checked_sub(config.total_tokens_outstanding, amount)
        original_tokens = position.tokens_minted
        position.tokens_minted = _checked_sub(original_tokens, amount)
        collateral_reduction = _checked_mul(position.usdc_collateral, amount) // original_tokens
        position.usdc_collateral = _checked_sub(position.usdc_collateral, collateral_reduction)


@dataclass
class UpdateFee:
    """Accounts taking part in a fee change."""

    authority: bytes
    token_config: TokenConfig
    token_mint: Mint

    def validate(self) -> None:
        """Check the account constraints, in declaration order."""
        _require(self.authority == self.token_config.authority, ContractErrorCode.UNAUTHORIZED)
        _require(
            self.token_mint.key == self.token_config.token_mint,
            ContractErrorCode.INVALID_ORACLE_DATA,
        )


def update_fee(accounts: UpdateFee, new_fee_bps: int) -> None:
    """Set the redemption fee, in basis points, to at most 10000."""
    if not 0 <= new_fee_bps <= 0xFFFF:
        raise ValueError(f"fee out of range: {new_fee_bps}")
    accounts.validate()
    _require(new_fee_bps <= MAX_FEE_BPS, ContractErrorCode.INVALID_FEE_PERCENTAGE)
    accounts.token_config.fee_bps = new_fee_bps
    logger.info("Fee updated to: %s", new_fee_bps)