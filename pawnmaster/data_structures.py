"""Core data structures for the pawn ledger.

Every entity here is a frozen dataclass. Services never edit a contract in
place; they build a new value with ``dataclasses.replace`` and hand it back
to the ledger store, so segment and transaction logs stay append-only.
"""
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple


class ContractStatus(str, Enum):
    """Persisted contract states."""
    ACTIVE = "Active"
    REDEEMED = "Redeemed"
    FORFEITED = "Forfeited"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self != ContractStatus.ACTIVE


class DisplayStatus(str, Enum):
    """Statuses shown to staff; OVERDUE is derived at read time."""
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    REDEEMED = "Redeemed"
    FORFEITED = "Forfeited"
    CANCELLED = "Cancelled"


class TransactionKind(str, Enum):
    PAWN = "pawn"
    RENEWAL = "renewal"
    INTEREST_PAYMENT = "interest_payment"
    PRINCIPAL_INCREASE = "principal_increase"
    PRINCIPAL_DECREASE = "principal_decrease"
    REDEMPTION = "redemption"
    RATE_CHANGE = "rate_change"
    CANCELLATION = "cancellation"
    FORFEITURE = "forfeiture"


class Direction(str, Enum):
    """Direction of a principal adjustment."""
    INCREASE = "increase"
    DECREASE = "decrease"


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    phone: str = ""
    address: str = ""
    id_card: str = ""
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class InterestSegment:
    """A period with a fixed principal and rate.

    ``end_date`` of None marks the open (current) segment.
    """
    start_date: date
    principal: float
    interest_rate: float
    end_date: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    def close(self, end_date: date) -> 'InterestSegment':
        """Return a closed copy of this segment.

        Raises:
            ValueError: If the segment is already closed.
        """
        if not self.is_open:
            raise ValueError(f"Segment starting {self.start_date} is already closed")
        return replace(self, end_date=end_date)


@dataclass(frozen=True)
class Transaction:
    """Immutable audit record of a ledger-affecting event."""
    id: str
    kind: TransactionKind
    timestamp: datetime
    amount: float
    description: str


@dataclass(frozen=True)
class Contract:
    """Pawn contract aggregate.

    ``loan_amount`` always equals the principal of the open segment.
    """
    id: str
    customer_id: str
    customer_name: str
    customer_phone: str
    model: str
    loan_amount: float
    interest_rate: float
    pawn_date: date
    due_date: date
    last_paid_date: date
    status: ContractStatus = ContractStatus.ACTIVE
    is_paperless: bool = False
    notes: str = ""
    segments: Tuple[InterestSegment, ...] = ()
    transactions: Tuple[Transaction, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.status == ContractStatus.ACTIVE

    @property
    def is_terminal(self) -> bool:
        return not self.is_active

    @property
    def open_segment(self) -> Optional[InterestSegment]:
        if self.segments and self.segments[-1].is_open:
            return self.segments[-1]
        return None

    @property
    def unsettled_segments(self) -> Tuple[InterestSegment, ...]:
        """Segments whose interest has not been settled by a renewal."""
        return tuple(s for s in self.segments if s.start_date >= self.last_paid_date)


@dataclass(frozen=True)
class Accrual:
    """Interest owed to a reference date."""
    interest_owed: int = 0
    total_days: int = 0
    overdue_days: int = 0

    @property
    def is_overdue(self) -> bool:
        return self.overdue_days > 0


@dataclass(frozen=True)
class ValuationAdvice:
    """Advisory valuation for a device, as returned by the advisory backend."""
    resale_price_range: str
    safe_loan_range: str
    key_checks: Tuple[str, ...]
    market_note: str


@dataclass
class PortfolioSummary:
    """Dashboard figures over active contracts."""
    total_principal: float
    total_interest: int
    active_count: int
    overdue_count: int
    due_today_count: int
