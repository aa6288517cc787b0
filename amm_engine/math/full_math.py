"""Integer multiply-divide helpers with explicit rounding.

Python ints never overflow, so these only pin down the rounding direction
and turn a zero denominator into a domain error.
"""

from amm_engine.errors import MathDomainError


def mul_div(a: int, b: int, denominator: int) -> int:
    """Calculate floor(a * b / denominator).

    Raises:
        MathDomainError: If denominator is zero
    """
    if denominator == 0:
        raise MathDomainError("mul_div by zero")
    return (a * b) // denominator


def mul_div_round_up(a: int, b: int, denominator: int) -> int:
    """Calculate ceil(a * b / denominator).

    Raises:
        MathDomainError: If denominator is zero
    """
    if denominator == 0:
        raise MathDomainError("mul_div_round_up by zero")
    return -((-(a * b)) // denominator)


def div_round_up(a: int, b: int) -> int:
    """Calculate ceil(a / b).

    Raises:
        MathDomainError: If b is zero
    """
    if b == 0:
        raise MathDomainError("div_round_up by zero")
    return -((-a) // b)
