"""Engine-wide constants.

Gas figures are abstract cost proxies used to compare quotes, not literal
execution costs.
"""

# Fees are held as integer units over this denominator (1e18 = 100%)
FEE_DENOMINATOR = 10**18

# Amplification coefficients are held as integers scaled by this factor
AMP_PRECISION = 1000

# Stable pools hold two coins
STABLE_N_COINS = 2

# Gas estimation constants
# Per-swap gas cost for constant-product pools
CONSTANT_PRODUCT_SWAP_GAS = 60_000
# Per-swap gas cost for stable pools (invariant solve is heavier)
STABLE_SWAP_GAS = 90_000
# Base gas cost for a concentrated-liquidity swap with no tick crossing
CONCENTRATED_SWAP_GAS = 106_000
# Added for every initialized tick crossed during a swap
TICK_CROSSING_GAS = 20_000

# Newton iterations for the stable invariant: default cap and absolute ceiling
STABLE_MAX_ITERATIONS = 255
STABLE_MAX_ITERATIONS_CEILING = 1024

# Stable balances are scaled up to at least this many digits before solving
STABLE_PRECISION_DIGITS = 18
