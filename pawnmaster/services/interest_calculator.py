"""Interest accrual service for PawnMaster.

This module holds the pure calculations behind every contract screen:
- Accrued interest over a contract's principal segments
- Overdue days against the due date
- Days of interest covered by a payment
- The derived "Overdue" display status
"""
import math
from datetime import date, datetime
from typing import Iterable, Optional

from dateutil.parser import isoparse

from pawnmaster.config import RATE_UNIT
from pawnmaster.data_structures import (
    Accrual,
    Contract,
    ContractStatus,
    DisplayStatus,
    InterestSegment,
)


def as_day(value) -> date:
    """Reduce a date, datetime or ISO string to a calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return isoparse(value).date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


def today() -> date:
    return date.today()


def round_half_up(value: float) -> int:
    """Round to the nearest whole currency unit, halves away from zero."""
    if value < 0:
        return -round_half_up(-value)
    return int(math.floor(value + 0.5))


def daily_interest(principal: float, rate: float) -> float:
    """Interest charged for one day on ``principal`` at ``rate``."""
    return principal / RATE_UNIT * rate


def segment_days(segment: InterestSegment, reference_date=None) -> int:
    """Inclusive day span of a segment, never negative."""
    start = as_day(segment.start_date)
    if segment.end_date is not None:
        end = as_day(segment.end_date)
    else:
        end = as_day(reference_date) if reference_date is not None else today()
    if end < start:
        return 0
    return (end - start).days + 1


def segment_interest(segment: InterestSegment, days: int) -> int:
    return round_half_up(segment.principal * segment.interest_rate * days / RATE_UNIT)


def overdue_days(due_date, status, reference_date=None) -> int:
    """Whole days past the due date; zero unless the contract is Active."""
    if status != ContractStatus.ACTIVE:
        return 0
    ref = as_day(reference_date) if reference_date is not None else today()
    return max(0, (ref - as_day(due_date)).days)


def compute_accrual(segments: Iterable[InterestSegment], due_date, status,
                    reference_date=None) -> Accrual:
    """Compute interest owed, elapsed days and overdue days.

    Args:
        segments: Principal segments, oldest first.
        due_date: Contract due date.
        status: Stored contract status.
        reference_date: Day to accrue to (default: today).

    Returns:
        Accrual with the summed interest and days.
    """
    ref = as_day(reference_date) if reference_date is not None else today()

    interest_owed = 0
    total_days = 0
    for segment in segments:
        days = segment_days(segment, ref)
        interest_owed += segment_interest(segment, days)
        total_days += days

    return Accrual(
        interest_owed=interest_owed,
        total_days=total_days,
        overdue_days=overdue_days(due_date, status, ref),
    )


def accrue(contract: Contract, reference_date=None) -> Accrual:
    """Accrual of a contract over the segments not yet settled by a renewal."""
    return compute_accrual(contract.unsettled_segments, contract.due_date,
                           contract.status, reference_date)


def days_covered(principal: float, rate: float, amount: float) -> int:
    """Number of whole days of interest that ``amount`` pays for."""
    per_day = daily_interest(principal, rate)
    if per_day <= 0:
        return 0
    return int(math.floor(amount / per_day))


def settlement_amount(contract: Contract, reference_date=None) -> float:
    """Principal plus interest owed, the amount proposed at redemption."""
    return contract.loan_amount + accrue(contract, reference_date).interest_owed


def display_status(contract: Contract, reference_date=None) -> DisplayStatus:
    """Status label for a contract; Active contracts past due show as Overdue."""
    if contract.is_active:
        if accrue(contract, reference_date).overdue_days > 0:
            return DisplayStatus.OVERDUE
        return DisplayStatus.ACTIVE
    return DisplayStatus(ContractStatus(contract.status).value)


def is_overdue(contract: Contract, reference_date: Optional[date] = None) -> bool:
    return display_status(contract, reference_date) == DisplayStatus.OVERDUE
