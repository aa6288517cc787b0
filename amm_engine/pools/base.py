"""Pool contract shared by every pool model.

Pool models do not inherit from a common base class. Each one holds a
PoolInfo (identity fixed at construction) plus its own state snapshot, and
satisfies the Pool protocol below.

Direction convention: True sells token0 for token1, False sells token1 for
token0.

Thread safety: a single pool instance must not be refreshed while another
thread is quoting on it; callers serialize access (one instance per worker
or an external lock). Distinct instances share nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from amm_engine.errors import InvalidInputError, UnknownTokenError
from amm_engine.math.amounts import to_amount
from amm_engine.math.scaling import fee_to_units, to_fee


class Token(BaseModel):
    """Token label attached to one side of a pool. No balance semantics."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(min_length=1)
    symbol: str = ""
    name: str = ""
    # Some exotic tokens use more than 18 decimals; 77 is the uint256 maximum
    decimals: int = Field(default=18, ge=0, le=77)


@dataclass(frozen=True)
class PoolInfo:
    """Immutable pool identity: address, token pair and fee.

    Attributes:
        address: Pool identifier
        token0: Token sold when direction is True
        token1: Token sold when direction is False
        fee: Swap fee as a fraction in [0, 1) (e.g. Decimal("0.003") for 0.3%)
    """

    address: str
    token0: Token
    token1: Token
    fee: Decimal
    fee_units: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Normalize floats/strings once; frozen dataclass needs object.__setattr__
        object.__setattr__(self, "fee", to_fee(self.fee))
        object.__setattr__(self, "fee_units", fee_to_units(self.fee))
        if _same_token(self.token0, self.token1):
            raise InvalidInputError(
                f"Pool {self.address} pairs token {self.token0.address} with itself"
            )

    def direction_for(self, token_in: Token | str) -> bool:
        """Swap direction for selling ``token_in``.

        Raises:
            UnknownTokenError: If token_in is not in the pool
        """
        if _same_token(token_in, self.token0):
            return True
        if _same_token(token_in, self.token1):
            return False
        raise UnknownTokenError(f"Token {_address_of(token_in)} not in pool {self.address}")

    def token_out(self, token_in: Token | str) -> Token:
        """Get the output token for a given input token."""
        return self.token1 if self.direction_for(token_in) else self.token0


def _address_of(token: Token | str) -> str:
    return token.address if isinstance(token, Token) else token


def _same_token(a: Token | str, b: Token | str) -> bool:
    return _address_of(a).lower() == _address_of(b).lower()


@dataclass(frozen=True)
class QuoteResult:
    """Result of a forward or inverse quote.

    Attributes:
        amount: Output amount (forward quote) or required input (inverse quote)
        gas_estimate: Abstract cost of the code path taken
    """

    amount: int
    gas_estimate: int


@runtime_checkable
class Pool(Protocol):
    """Capability set every pool model provides.

    Amounts are integer base units; prices are floats.
    """

    info: PoolInfo

    @property
    def gas_estimate(self) -> int:
        """Base cost of one swap through this pool."""
        ...

    def quote_output(self, amount_in: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate output for an exact input.

        Raises:
            InvalidAmountError: If amount_in is negative or not finite
            PoolDomainError: If the pool cannot serve the trade
        """
        ...

    def quote_input(self, amount_out: int | float | Decimal, direction: bool) -> QuoteResult:
        """Calculate input required for an exact output.

        Raises:
            InvalidAmountError: If amount_out is negative or not finite
            PoolDomainError: If the pool cannot produce amount_out
        """
        ...

    def current_price(self, direction: bool) -> float:
        """Marginal output per unit of input, fee excluded. Always positive."""
        ...

    def refresh_state(self, state: Any) -> None:
        """Replace the live state with a new snapshot in one step."""
        ...


def price_impact(pool: Pool, amount_in: int | float | Decimal, direction: bool) -> float:
    """Relative shortfall of the executed rate against the fee-adjusted spot price.

    Zero for an infinitesimal trade, approaching one as the trade drains the pool.

    Args:
        pool: Any pool model
        amount_in: Input amount
        direction: Swap direction

    Returns:
        1 - (out / in) / (spot * (1 - fee)), or 0.0 for a zero input
    """
    amount = to_amount(amount_in, "amount_in")
    if amount == 0:
        return 0.0
    quote = pool.quote_output(amount, direction)
    spot = pool.current_price(direction) * (1 - float(pool.info.fee))
    if spot <= 0:
        return 1.0
    return max(0.0, 1.0 - (quote.amount / amount) / spot)
