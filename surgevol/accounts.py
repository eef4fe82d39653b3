"""Account records and the token operations the programs perform on them."""

from __future__ import annotations

from dataclasses import dataclass, field

U64_MAX = 2**64 - 1


@dataclass(kw_only=True)
class Mint:
    """A token mint."""

    key: bytes
    supply: int = 0
    decimals: int = 6


@dataclass(kw_only=True)
class TokenAccount:
    """A token balance held by an owner for one mint."""

    key: bytes
    mint: bytes
    owner: bytes
    amount: int = 0


@dataclass(kw_only=True)
class TokenConfig:
    """Configuration of a volatility futures token."""

    key: bytes
    authority: bytes
    token_mint: bytes
    usdc_mint: bytes
    fee_destination: bytes
    collateral_pool: bytes
    token_name: str
    token_symbol: str
    fee_bps: int
    oracle: bytes
    total_tokens_outstanding: int = 0
    usdc_per_vol_point: int
    collateral_pool_bump: int = 0
    bump: int = 0


@dataclass(kw_only=True)
class UserPosition:
    """A user's open futures position."""

    key: bytes
    owner: bytes
    entry_volatility: float
    tokens_minted: int = 0
    usdc_collateral: int = 0
    mint_timestamp: int = 0
    bump: int = 0


@dataclass
class MarketBumps:
    """PDA bump seeds of a variance market."""

    market: int = 0


@dataclass(kw_only=True)
class Market:
    """A variance swap market for one epoch."""

    key: bytes
    epoch: int
    strike: float
    realized_variance: float = 0.0
    var_long_mint: bytes
    var_short_mint: bytes
    usdc_vault: bytes
    authority: bytes
    volatility_stats: bytes
    timestamp: int
    start_volatility: float
    bumps: MarketBumps = field(default_factory=MarketBumps)
    is_initialized: bool = False
    is_expired: bool = False
    total_deposits: int = 0


def _check_amount(amount: int) -> None:
    if not 0 <= amount <= U64_MAX:
        raise ValueError(f"amount out of range: {amount}")


def _check_owner(account: TokenAccount, authority: bytes) -> None:
    if authority != account.owner:
        raise PermissionError("authority does not own the token account")


def _checked_add(a: int, b: int) -> int:
    total = a + b
    if total > U64_MAX:
        raise OverflowError("token amount overflow")
    return total


def transfer(source: TokenAccount, destination: TokenAccount, authority: bytes, amount: int) -> None:
    """Move amount tokens from source to destination."""
    _check_amount(amount)
    if source.mint != destination.mint:
        raise ValueError("account mints do not match")
    _check_owner(source, authority)
    if amount > source.amount:
        raise ValueError("insufficient funds")
    if source is destination:
        return
    destination.amount = _checked_add(destination.amount, amount)
    source.amount -= amount


def burn(mint: Mint, account: TokenAccount, authority: bytes, amount: int) -> None:
    """Destroy amount tokens held in account."""
    _check_amount(amount)
    if account.mint != mint.key:
        raise ValueError("account does not belong to the mint")
    _check_owner(account, authority)
    if amount > account.amount:
        raise ValueError("insufficient funds")
    if amount > mint.supply:
        raise OverflowError("burn exceeds mint supply")
    account.amount -= amount
    mint.supply -= amount


def mint_to(mint: Mint, account: TokenAccount, amount: int) -> None:
    """Create amount new tokens in account."""
    _check_amount(amount)
    if account.mint != mint.key:
        raise ValueError("account does not belong to the mint")
    new_supply = _checked_add(mint.supply, amount)
    account.amount = _checked_add(account.amount, amount)
    mint.supply = new_supply