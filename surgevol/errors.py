"""Error codes and exceptions raised by the surge programs."""

from __future__ import annotations

from enum import IntEnum


class _CodedEnum(IntEnum):
    """Integer error code that carries a human-readable message."""

    message: str

    def __new__(cls, value: int, message: str):
        member = int.__new__(cls, value)
        member._value_ = value
        member.message = message
        return member


class ContractErrorCode(_CodedEnum):
    """Errors of the volatility futures program."""

    ORACLE_STALE = 6000, "Oracle account data is stale or invalid"
    INSUFFICIENT_BALANCE = 6001, "Insufficient USDC balance"
    INVALID_FEE_PERCENTAGE = 6002, "Invalid fee percentage, must be between 0 and 10000"
    UNAUTHORIZED = 6003, "Only authority can perform this action"
    INVALID_AMOUNT = 6004, "Invalid token amount"
    MATH_OVERFLOW = 6005, "Math overflow"
    INVALID_ORACLE_DATA = 6006, "Invalid oracle data or account mismatch"
    POSITION_NOT_FOUND = 6007, "Position not found"
    INSUFFICIENT_TOKENS = 6008, "Insufficient tokens to redeem"


class OracleErrorCode(_CodedEnum):
    """Errors of the volatility oracle program."""

    INVALID_PYTH_ACCOUNT = 6000, "Invalid Pyth price account"
    NO_PRICE_AVAILABLE = 6001, "No price is available from Pyth"
    INVALID_PRICE_DATA = 6002, "Invalid price data"
    INVALID_AUTHORITY = 6003, "Invalid authority"


class VarianceErrorCode(_CodedEnum):
    """Errors of the variance swap program."""

    MARKET_EXPIRED = 6000, "Market is already expired"
    NUMBER_OVERFLOW = 6001, "Numeric overflow occurred"


class _ProgramError(Exception):
    """Exception carrying one code of a program's error enumeration."""

    code_type: type[_CodedEnum]

    def __init__(self, code: int) -> None:
        resolved = self.code_type(code)
        super().__init__(resolved.message)
        self.code = resolved

    @property
    def message(self) -> str:
        return self.code.message


class ContractError(_ProgramError):
    """Raised by the volatility futures program."""

    code_type = ContractErrorCode


class OracleError(_ProgramError):
    """Raised by the volatility oracle program."""

    code_type = OracleErrorCode


class VarianceError(_ProgramError):
    """Raised by the variance swap program."""

    code_type = VarianceErrorCode


class InvalidAccountData(Exception):
    """Raised when an account's stored bytes cannot be read."""

    def __init__(self, message: str = "An account's data contents was invalid") -> None:
        super().__init__(message)