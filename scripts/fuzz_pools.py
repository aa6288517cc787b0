#!/usr/bin/env python3
"""Fuzz pool models with seeded random pools and trades.

Checks, for every random pool:
    - current_price(True) * current_price(False) ≈ 1
    - quote_input(quote_output(x).amount).amount ≈ x for random trades

Usage:
    python scripts/fuzz_pools.py --seed 42
    python scripts/fuzz_pools.py --model stable --pools 100 --trades 50 -v
"""

import argparse
import sys

import structlog

from amm_engine.config import EngineConfig
from amm_engine.errors import InvalidConfigError
from amm_engine.fuzz import POOL_BUILDERS, run_fuzz
from amm_engine.log_config import configure_logging

logger = structlog.get_logger()


def main() -> int:
    """Main entry point for the pool fuzzer."""
    parser = argparse.ArgumentParser(
        description="Fuzz AMM pool models with seeded random pools and trades",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/fuzz_pools.py --seed 7 --model concentrated

Engine settings (gas figures, stable iteration cap) are read from
AMM_ENGINE_* environment variables.
        """,
    )
    parser.add_argument(
        "--model",
        choices=[*POOL_BUILDERS, "all"],
        default="all",
        help="Pool model to fuzz (default: all)",
    )
    parser.add_argument(
        "--seed",
        type=str,
        default="0",
        help="Seed for the random stream (default: 0)",
    )
    parser.add_argument(
        "--pools",
        type=int,
        default=30,
        help="Random pools per model (default: 30)",
    )
    parser.add_argument(
        "--trades",
        type=int,
        default=30,
        help="Random trades per pool (default: 30)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()
    configure_logging(verbose=args.verbose)

    try:
        config = EngineConfig.from_env()
    except InvalidConfigError as e:
        logger.error("invalid_engine_config", error=str(e))
        return 1

    models = list(POOL_BUILDERS) if args.model == "all" else [args.model]
    failed = False
    for model in models:
        report = run_fuzz(model, args.seed, pools=args.pools, trades=args.trades, config=config)
        print(
            f"{model:>16}: {report.checks} checks, {report.failures} failures, "
            f"{report.skipped} skipped"
        )
        for pool_number, trade_number in report.failed_cases:
            print(f"    pool {pool_number} trade {trade_number}")
        failed = failed or not report.passed

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
