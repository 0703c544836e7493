"""Command-line entry point for PawnMaster.

Usage:
    pawnmaster quote --principal 25000000 --start 2025-01-10 --end 2025-01-19
    pawnmaster settings --db shop.db --rate 2500 --duration 45
"""
import argparse
import sys

from pawnmaster.config import DEFAULT_INTEREST_RATE, RATE_UNIT, LedgerConfig
from pawnmaster.contract_action_controller import parse_amount, parse_rate
from pawnmaster.data_structures import ContractStatus, InterestSegment
from pawnmaster.database import SettingsDatabase, load_config, save_config
from pawnmaster.exceptions import PawnMasterError, ValidationError
from pawnmaster.logging_setup import get_logger, setup_logging
from pawnmaster.services.interest_calculator import as_day, compute_accrual, today

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pawnmaster",
        description="Pawn-shop ledger utilities",
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--log-format", default="standard", choices=["standard", "json"])
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Interest owed on a single principal")
    quote.add_argument("--principal", required=True, help="Principal, e.g. 25.000.000")
    quote.add_argument("--rate", default=None,
                       help=f"Rate per {RATE_UNIT:,} per day (default: saved setting)")
    quote.add_argument("--start", required=True, help="Pawn date (YYYY-MM-DD)")
    quote.add_argument("--end", default=None, help="Reference date (default: today)")
    quote.add_argument("--due", default=None, help="Due date, to report overdue days")
    quote.add_argument("--db", default=None, help="Settings database for the default rate")

    settings = sub.add_parser("settings", help="Show or update contract defaults")
    settings.add_argument("--db", default="pawn_master.db", help="Settings database path")
    settings.add_argument("--rate", default=None, help="New default interest rate")
    settings.add_argument("--duration", default=None, help="New default duration in days")

    return parser.parse_args(argv)


def run_quote(args) -> int:
    rate = args.rate
    if rate is None:
        if args.db:
            with SettingsDatabase(args.db) as db:
                rate = load_config(db).default_interest_rate
        else:
            rate = DEFAULT_INTEREST_RATE
    rate = parse_rate(rate)

    start = as_day(args.start)
    end = as_day(args.end) if args.end else today()
    due = as_day(args.due) if args.due else end
    segment = InterestSegment(start_date=start, principal=parse_amount(args.principal),
                              interest_rate=rate)
    accrual = compute_accrual([segment], due, ContractStatus.ACTIVE, end)

    print(f"Principal:     {segment.principal:,.0f}")
    print(f"Rate:          {rate:g} per {RATE_UNIT:,}/day")
    print(f"Days:          {accrual.total_days}")
    print(f"Interest owed: {accrual.interest_owed:,}")
    if args.due:
        print(f"Overdue days:  {accrual.overdue_days}")
    return 0


def run_settings(args) -> int:
    with SettingsDatabase(args.db) as db:
        config = load_config(db)
        if args.rate is not None or args.duration is not None:
            config = LedgerConfig(
                default_interest_rate=parse_rate(args.rate) if args.rate is not None
                else config.default_interest_rate,
                default_duration_days=parse_amount(args.duration) if args.duration is not None
                else config.default_duration_days,
            )
            try:
                save_config(db, config)
            except ValidationError as e:
                print(f"Invalid setting: {e.message}", file=sys.stderr)
                return 2
            logger.info("Saved defaults to %s", args.db)
        print(f"Default interest rate: {config.default_interest_rate:g}")
        print(f"Default duration:      {config.default_duration_days} days")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_format)
    try:
        if args.command == "quote":
            return run_quote(args)
        return run_settings(args)
    except (PawnMasterError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
