"""
qf_calculator/cli.py — Command-line interface for the QF calculator.

Usage:
    python -m qf_calculator.cli matches --chain-id 1 --round-id 0x1234
    python -m qf_calculator.cli matches --chain-id 1 --round-id 0x1234 --format csv -o out.csv
    python -m qf_calculator.cli summary --chain-id 1 --round-id 0x1234

Data is read from --data-dir, else QF_DATA_DIR, else ./data. QF_* variables
may also be set in a .env file (see CalculatorConfig.from_env).

Exit codes:
    0  success
    1  calculation failed (e.g. a matched recipient has no application, or
       a QF_* setting is invalid)
    2  round or data file not found
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path

EXIT_OK = 0
EXIT_INTERNAL_ERROR = 1
EXIT_NOT_FOUND = 2


# ── .env loader ───────────────────────────────────────────────────────────────

def _load_dotenv(env_file: str | None = None) -> dict[str, str]:
    """Load key=value pairs from a .env file into the environment.

    Existing environment values are NOT overwritten. Returns the dict of
    values that were newly loaded.

    Args:
        env_file: Explicit path. If None, searches for .env starting from the
                  current working directory up to the filesystem root. The
                  package is installed into site-packages, so its own location
                  says nothing about which project the user is running in.
    """
    if env_file is None:
        start = Path.cwd()
        for directory in [start, *start.parents]:
            candidate = directory / ".env"
            if candidate.is_file():
                env_file = str(candidate)
                break

    if not env_file or not Path(env_file).is_file():
        return {}

    loaded: dict[str, str] = {}
    with open(env_file, encoding="utf-8") as fh:
        for raw_line in fh:
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()
            # Strip surrounding quotes if present
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
                value = value[1:-1]
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(level: str = "INFO") -> None:
    """Configure root logger with timestamps on stderr."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(level=numeric, format=fmt, datefmt=datefmt, stream=sys.stderr)


logger = logging.getLogger("qf_calculator.cli")


def _decimal_arg(value: str) -> Decimal:
    from qf_calculator.models import to_decimal

    parsed = to_decimal(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    return parsed


def _run_calculation(args: argparse.Namespace):
    """Build the calculator from CLI flags and run it. Returns a CalculationRun."""
    from qf_calculator.calculator import Calculator, CalculatorOptions
    from qf_calculator.config import CalculatorConfig
    from qf_calculator.ingestion.data_provider import FileSystemDataProvider
    from qf_calculator.ingestion.sources import RoundDataSource

    config = CalculatorConfig.from_env()
    data_dir = args.data_dir or config.data_dir

    source = RoundDataSource(
        FileSystemDataProvider(data_dir),
        passport_scores_path=config.passport_scores_path,
    )
    options = CalculatorOptions(
        chain_id=args.chain_id,
        round_id=args.round_id,
        minimum_amount=args.min_amount,
        passport_threshold=args.passport_threshold,
        enable_passport=args.enable_passport,
        ignore_saturation=args.ignore_saturation,
    )
    return Calculator(source, options, config).run(), config


def _guarded(command):
    """Map calculation errors onto exit codes."""

    def wrapper(args: argparse.Namespace) -> int:
        from qf_calculator.errors import NotFoundError, QFCalculatorError

        _load_dotenv(args.env_file)
        _setup_logging(args.log_level)
        try:
            return command(args)
        except NotFoundError as exc:
            logger.error("Not found: %s", exc)
            return EXIT_NOT_FOUND
        except QFCalculatorError as exc:
            logger.error("Calculation failed: %s", exc)
            return EXIT_INTERNAL_ERROR
        except ValueError as exc:
            # Bad QF_* settings, negative contribution amounts
            logger.error("Invalid input: %s", exc)
            return EXIT_INTERNAL_ERROR

    wrapper.__name__ = command.__name__
    wrapper.__doc__ = command.__doc__
    return wrapper


# ── Subcommand: matches ───────────────────────────────────────────────────────

@_guarded
def cmd_matches(args: argparse.Namespace) -> int:
    """Compute matches and write them as JSON or CSV."""
    run, _ = _run_calculation(args)

    if args.format == "csv":
        from qf_calculator.matching.summary import results_frame

        frame = results_frame(run.results)
        if args.output:
            frame.to_csv(args.output, index=False)
        else:
            frame.to_csv(sys.stdout, index=False)
    else:
        payload = json.dumps([r.to_dict() for r in run.results], indent=2)
        if args.output:
            with open(args.output, "w", encoding="utf-8") as fh:
                fh.write(payload + "\n")
        else:
            print(payload)

    if args.output:
        logger.info("Wrote %d results to %s", len(run.results), args.output)
    return EXIT_OK


# ── Subcommand: summary ───────────────────────────────────────────────────────

@_guarded
def cmd_summary(args: argparse.Namespace) -> int:
    """Compute matches and print a distribution summary."""
    from qf_calculator.matching.summary import matching_summary

    run, config = _run_calculation(args)
    pool = run.round_config.match_pool_usd
    summary = matching_summary(run.calculations, pool, run.graph, top_n=config.summary_top_n)

    print()
    print("=" * 60)
    print(f"  QF MATCHES — chain {args.chain_id} round {args.round_id}")
    print("=" * 60)
    print(f"  Match pool (USD)   : {float(pool):,.2f}")
    print(f"  Contributions      : {len(run.eligible_contributions)} eligible of {run.total_contributions}")
    print(f"  Contributors       : {summary['contributors']}")
    print(f"  Recipients         : {summary['recipients']}")
    print(f"  Total received     : {summary['total_received']:,.2f}")
    print(f"  Total matched      : {summary['total_matched']:,.2f}")
    print(f"  Unallocated        : {summary['unallocated']:,.2f}")
    print(f"  Match HHI          : {summary['match_hhi']:,.0f}")
    if summary["top_matched"]:
        print()
        print("  Top matched:")
        for entry in summary["top_matched"]:
            print(f"    {entry['recipient']:<42} {entry['matched']:>12,.2f}  ({entry['share']:.1%})")
    print("=" * 60)

    return EXIT_OK


# ── Parser ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qf-calculator",
        description="Quadratic-funding match calculator.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        metavar="PATH",
        help="Path to a .env file (default: search upward from the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_round_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("--chain-id", required=True, metavar="ID")
        p.add_argument("--round-id", required=True, metavar="ID")
        p.add_argument(
            "--data-dir",
            default=None,
            metavar="PATH",
            help="Root of the JSON data tree (default: QF_DATA_DIR or ./data)",
        )
        p.add_argument(
            "--min-amount",
            type=_decimal_arg,
            default=None,
            metavar="USD",
            help="Minimum contribution; overrides the round's minimumAmount",
        )
        p.add_argument(
            "--enable-passport",
            action="store_const",
            const=True,
            default=None,
            help="Only count contributions from passport-verified contributors",
        )
        p.add_argument(
            "--passport-threshold",
            type=_decimal_arg,
            default=None,
            metavar="SCORE",
            help="Require passport rawScore strictly above SCORE (with --enable-passport)",
        )
        p.add_argument(
            "--clip-saturation",
            dest="ignore_saturation",
            action="store_const",
            const=False,
            default=None,
            help="Clip cumulative allocations at the match pool",
        )

    # matches
    p_matches = subparsers.add_parser(
        "matches",
        help="Compute per-application matches",
    )
    add_round_flags(p_matches)
    p_matches.add_argument("--format", choices=["json", "csv"], default="json")
    p_matches.add_argument(
        "-o", "--output", default=None, metavar="PATH",
        help="Write results to PATH instead of stdout",
    )
    p_matches.set_defaults(func=cmd_matches)

    # summary
    p_summary = subparsers.add_parser(
        "summary",
        help="Compute matches and print a round summary",
    )
    add_round_flags(p_summary)
    p_summary.set_defaults(func=cmd_summary)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
