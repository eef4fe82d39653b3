"""Volatility oracle: Welford statistics over log returns of a price feed."""

from __future__ import annotations

import hashlib
import math
import string
import struct
from dataclasses import dataclass
from typing import ClassVar, Optional

from surgevol.errors import InvalidAccountData, OracleError, OracleErrorCode

DISCRIMINATOR = hashlib.sha256(b"account:VolatilityStats").digest()[:8]
MAX_PRICE_AGE = 3600
TRADING_DAYS = 252.0
PRICE_SCALE = 1_000_000.0

_U64_MAX = 2**64 - 1
_BODY = struct.Struct("<32sQddQd")
_VOLATILITY_OFFSET = 8 + 32 + 8 + 8 + 8 + 8
_F64 = struct.Struct("<d")


def feed_id_from_hex(text: str) -> bytes:
    """Parse a 32-byte price feed id written in hex, with or without 0x."""
    digits = text[2:] if text.startswith("0x") else text
    if len(digits) != 64:
        raise ValueError("feed id must be 32 bytes")
    if not all(ch in string.hexdigits for ch in digits):
        raise ValueError("feed id contains a non-hex character")
    return bytes.fromhex(digits)


SOL_USD_FEED_ID = feed_id_from_hex(
    "ef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d"
)


@dataclass
class VolatilityStats:
    """Running statistics of log returns kept by the oracle."""

    SIZE: ClassVar[int] = 8 + _BODY.size

    authority: bytes
    last_price: int = 0
    mean: float = 0.0
    m2: float = 0.0
    count: int = 0
    annualized_volatility: float = 0.0

    def __post_init__(self) -> None:
        if len(self.authority) != 32:
            raise ValueError("authority must be 32 bytes")

    def update_volatility(
        self,
        last_price: Optional[int] = None,
        mean: Optional[float] = None,
        m2: Optional[float] = None,
        count: Optional[int] = None,
        annualized_volatility: Optional[float] = None,
    ) -> None:
        """Overwrite every field that is given; leave the others alone."""
        if last_price is not None:
            self.last_price = last_price
        if mean is not None:
            self.mean = mean
        if m2 is not None:
            self.m2 = m2
        if count is not None:
            self.count = count
        if annualized_volatility is not None:
            self.annualized_volatility = annualized_volatility

    def to_bytes(self) -> bytes:
        """Serialize as account data, discriminator first."""
        return DISCRIMINATOR + _BODY.pack(
            self.authority,
            self.last_price,
            self.mean,
            self.m2,
            self.count,
            self.annualized_volatility,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "VolatilityStats":
        """Deserialize account data written by to_bytes."""
        if len(data) < cls.SIZE:
            raise InvalidAccountData("volatility stats account is too short")
        if bytes(data[:8]) != DISCRIMINATOR:
            raise InvalidAccountData("account discriminator mismatch")
        authority, last_price, mean, m2, count, vol = _BODY.unpack_from(data, 8)
        return cls(
            authority=authority,
            last_price=last_price,
            mean=mean,
            m2=m2,
            count=count,
            annualized_volatility=vol,
        )


def read_annualized_volatility(data: bytes) -> float:
    """Read only the annualized volatility from raw account data."""
    if len(data) < VolatilityStats.SIZE:
        raise InvalidAccountData("volatility stats account is too short")
    return _F64.unpack_from(data, _VOLATILITY_OFFSET)[0]


@dataclass(frozen=True)
class Price:
    """A price reading: price * 10^exponent, with confidence interval."""

    price: int
    conf: int
    exponent: int
    publish_time: int


@dataclass(frozen=True)
class PriceUpdate:
    """A posted price update for one feed."""

    feed_id: bytes
    price: Price

    def get_price_no_older_than(self, now: int, max_age: int, feed_id: bytes) -> Price:
        """Return the price if it belongs to feed_id and is at most max_age old."""
        if feed_id != self.feed_id:
            raise LookupError("price update is for a different feed")
        if self.price.publish_time + max_age < now:
            raise LookupError("price is too old")
        return self.price


@dataclass(frozen=True)
class VolatilityUpdated:
    """Event emitted after each oracle update."""

    current_price: int
    mean: float
    m2: float
    count: int
    annualized_volatility: float


def _pow10(exponent: int) -> float:
    try:
        return 10.0**exponent
    except OverflowError:
        return math.inf


def _saturating_u64(value: float) -> int:
    if math.isnan(value) or value <= 0:
        return 0
    if value >= _U64_MAX:
        return _U64_MAX
    return int(value)


def _div(a: float, b: float) -> float:
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _ln(x: float) -> float:
    if math.isnan(x) or x < 0:
        return math.nan
    if x == 0:
        return -math.inf
    if math.isinf(x):
        return math.inf
    return math.log(x)


def _sqrt(x: float) -> float:
    return math.nan if x < 0 else math.sqrt(x)


def initialize_volatility_stats(authority: bytes) -> VolatilityStats:
    """Create an empty statistics account owned by authority."""
    return VolatilityStats(
        authority=authority,
        last_price=0,
        mean=0.0,
        m2=0.0,
        count=0,
        annualized_volatility=0.0,
    )


def update_volatility(
    stats: VolatilityStats,
    authority: bytes,
    price_update: PriceUpdate,
    now: int,
) -> VolatilityUpdated:
    """Fold the latest SOL/USD price into stats and return the emitted event."""
    if authority != stats.authority:
        raise OracleError(OracleErrorCode.INVALID_AUTHORITY)
    try:
        price = price_update.get_price_no_older_than(now, MAX_PRICE_AGE, SOL_USD_FEED_ID)
    except LookupError as exc:
        raise OracleError(OracleErrorCode.NO_PRICE_AVAILABLE) from exc

    current_price_raw = float(price.price) * _pow10(price.exponent)
    current_price = _saturating_u64(current_price_raw * PRICE_SCALE)

    mean, m2, count, volatility = (
        stats.mean,
        stats.m2,
        stats.count,
        stats.annualized_volatility,
    )

    if stats.count > 0:
        last_price = stats.last_price / PRICE_SCALE
        log_return = _ln(_div(current_price_raw, last_price))
        delta = log_return - stats.mean
        count += 1
        mean += delta / count
        m2 += delta * (log_return - mean)
        if count > 1:
            variance = m2 / (count - 1)
            volatility = _sqrt(variance) * math.sqrt(TRADING_DAYS)
    else:
        count = 1

    stats.update_volatility(current_price, mean, m2, count, volatility)
    return VolatilityUpdated(
        current_price=current_price,
        mean=mean,
        m2=m2,
        count=count,
        annualized_volatility=volatility,
    )