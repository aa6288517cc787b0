"""Engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

from amm_engine.constants import (
    CONCENTRATED_SWAP_GAS,
    CONSTANT_PRODUCT_SWAP_GAS,
    STABLE_MAX_ITERATIONS,
    STABLE_MAX_ITERATIONS_CEILING,
    STABLE_PRECISION_DIGITS,
    STABLE_SWAP_GAS,
    TICK_CROSSING_GAS,
)
from amm_engine.errors import InvalidConfigError

ENV_PREFIX = "AMM_ENGINE_"


@dataclass(frozen=True)
class EngineConfig:
    """Centralized configuration for pool calculations.

    Holds gas figures and solver limits so tests can run pools with different
    settings without touching module constants.

    Attributes:
        constant_product_swap_gas: Cost of one constant-product swap (default: 60,000)
        stable_swap_gas: Cost of one stable swap (default: 90,000)
        concentrated_swap_gas: Base cost of one concentrated-liquidity swap
            (default: 106,000)
        tick_crossing_gas: Extra cost per crossed tick (default: 20,000)
        stable_max_iterations: Newton iteration cap for the stable solver.
            Must be between 1 and STABLE_MAX_ITERATIONS_CEILING; there is no
            unbounded mode.
        stable_precision_digits: Digits the smaller stable reserve is scaled up
            to before solving
    """

    constant_product_swap_gas: int = CONSTANT_PRODUCT_SWAP_GAS
    stable_swap_gas: int = STABLE_SWAP_GAS
    concentrated_swap_gas: int = CONCENTRATED_SWAP_GAS
    tick_crossing_gas: int = TICK_CROSSING_GAS

    stable_max_iterations: int = STABLE_MAX_ITERATIONS
    stable_precision_digits: int = STABLE_PRECISION_DIGITS

    def __post_init__(self) -> None:
        for name in (
            "constant_product_swap_gas",
            "stable_swap_gas",
            "concentrated_swap_gas",
            "tick_crossing_gas",
        ):
            if getattr(self, name) < 0:
                raise InvalidConfigError(f"{name} must be non-negative, got {getattr(self, name)}")

        if not 1 <= self.stable_max_iterations <= STABLE_MAX_ITERATIONS_CEILING:
            raise InvalidConfigError(
                f"stable_max_iterations must be in [1, {STABLE_MAX_ITERATIONS_CEILING}], "
                f"got {self.stable_max_iterations}"
            )
        if not 0 <= self.stable_precision_digits <= 60:
            raise InvalidConfigError(
                f"stable_precision_digits must be in [0, 60], got {self.stable_precision_digits}"
            )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> EngineConfig:
        """Build a config from AMM_ENGINE_* environment variables.

        Unset variables keep their defaults, e.g. AMM_ENGINE_STABLE_MAX_ITERATIONS=64.

        Raises:
            InvalidConfigError: If a variable is not an integer or out of range
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, int] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            try:
                overrides[f.name] = int(raw)
            except ValueError as err:
                raise InvalidConfigError(
                    f"{ENV_PREFIX}{f.name.upper()} must be an integer: '{raw}'"
                ) from err
        return cls(**overrides)


# Default configuration instance
DEFAULT_ENGINE_CONFIG = EngineConfig()
