"""Contract lifecycle service for PawnMaster.

This service handles all contract state transitions including:
- Contract creation (pawn)
- Interest settlement (renewal)
- Due date extension
- Principal increase / decrease
- Redemption, cancellation and forfeiture
- Metadata edits

Every operation checks its preconditions first and then returns a new
Contract value; the contract passed in is never modified, so a failed
operation leaves nothing behind.
"""
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from pawnmaster.config import DATE_FORMAT_DISPLAY
from pawnmaster.data_structures import (
    Contract,
    ContractStatus,
    Customer,
    Direction,
    InterestSegment,
    Transaction,
    TransactionKind,
)
from pawnmaster.exceptions import InvalidStateTransitionError, ValidationError
from pawnmaster.logging_setup import get_logger
from pawnmaster.services.interest_calculator import as_day, days_covered

logger = get_logger(__name__)


def format_currency(value) -> str:
    return f"{value:,.0f}"


class ContractService:
    """Applies lifecycle operations to contracts.

    The service holds no contract state of its own; the engine looks
    contracts up in the ledger store, passes them in, and writes the
    returned value back.
    """

    def __init__(self, clock: Callable[[], datetime] = None):
        """Initialize ContractService.

        Args:
            clock: Optional callable returning the current datetime, used to
                timestamp transactions and as the default effective date.
        """
        self.clock = clock or datetime.now

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _effective_day(self, reference_date):
        if reference_date is None:
            return self.clock().date()
        return as_day(reference_date)

    def _new_transaction(self, kind: TransactionKind, amount, description: str) -> Transaction:
        return Transaction(
            id=uuid.uuid4().hex,
            kind=kind,
            timestamp=self.clock(),
            amount=amount,
            description=description,
        )

    @staticmethod
    def _require_active(contract: Contract, operation: str):
        if not contract.is_active:
            raise InvalidStateTransitionError(
                contract.id, ContractStatus(contract.status).value, operation)

    @staticmethod
    def _require_positive(value, field: str):
        if value is None or value <= 0:
            raise ValidationError(f"{field} must be greater than zero", field, value)

    @staticmethod
    def _require_text(value, field: str):
        if value is None or not str(value).strip():
            raise ValidationError(f"{field} is required", field, value)

    @staticmethod
    def _split_open_segment(contract: Contract, effective_day, principal, rate):
        """Close the open segment the day before ``effective_day`` and open a new one.

        Raises:
            ValidationError: If ``effective_day`` precedes the open segment's
                start or the last settlement date.
        """
        segments = list(contract.segments)
        if segments and effective_day < as_day(segments[-1].start_date):
            raise ValidationError(
                f"Effective date {effective_day.isoformat()} is before the current "
                f"interest period started ({as_day(segments[-1].start_date).isoformat()})",
                "reference_date", effective_day)
        if effective_day < as_day(contract.last_paid_date):
            raise ValidationError(
                f"Effective date {effective_day.isoformat()} is before interest was last "
                f"settled ({as_day(contract.last_paid_date).isoformat()})",
                "reference_date", effective_day)
        if segments and segments[-1].is_open:
            segments[-1] = segments[-1].close(effective_day - timedelta(days=1))
        segments.append(InterestSegment(
            start_date=effective_day,
            principal=principal,
            interest_rate=rate,
        ))
        return tuple(segments)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, contract_id: str, customer: Customer, model: str, principal,
               interest_rate, pawn_date, duration_days: int,
               is_paperless: bool = False, notes: str = "") -> Contract:
        """Open a new pawn contract.

        Args:
            contract_id: Reference for the new contract.
            customer: Customer the device belongs to.
            model: Device description.
            principal: Cash lent against the device.
            interest_rate: Rate per 1,000,000 of principal per day.
            pawn_date: Origination date.
            duration_days: Days until the contract falls due.

        Returns:
            The new Active contract.

        Raises:
            ValidationError: If principal, rate, duration, customer name or
                device description is missing or out of range.
        """
        self._require_text(customer.name if customer else None, "customer_name")
        self._require_text(model, "model")
        self._require_positive(principal, "principal")
        if interest_rate is None or interest_rate < 0:
            raise ValidationError("interest_rate cannot be negative", "interest_rate", interest_rate)
        self._require_positive(duration_days, "duration_days")

        start = as_day(pawn_date)
        contract = Contract(
            id=contract_id,
            customer_id=customer.id,
            customer_name=customer.name,
            customer_phone=customer.phone,
            model=model.strip(),
            loan_amount=principal,
            interest_rate=interest_rate,
            pawn_date=start,
            due_date=start + timedelta(days=int(duration_days)),
            last_paid_date=start,
            status=ContractStatus.ACTIVE,
            is_paperless=is_paperless,
            notes=notes or "",
            segments=(InterestSegment(start_date=start, principal=principal,
                                      interest_rate=interest_rate),),
            transactions=(self._new_transaction(TransactionKind.PAWN, principal, "New contract"),),
        )
        logger.info("Created contract %s for %s: %s, principal %s",
                    contract.id, customer.name, contract.model, format_currency(principal))
        return contract

    def renew(self, contract: Contract, amount, reference_date=None) -> Contract:
        """Settle accrued interest and restart the accrual clock.

        A payment too small to cover a single day is a no-op; callers are
        expected to check ``days_covered`` before submitting.

        Returns:
            The renewed contract, or ``contract`` unchanged for a no-op.

        Raises:
            InvalidStateTransitionError: If the contract is not Active.
            ValidationError: If amount is not positive.
        """
        self._require_active(contract, "renew")
        self._require_positive(amount, "amount")

        days = days_covered(contract.loan_amount, contract.interest_rate, amount)
        if days <= 0:
            logger.warning("Renewal of %s ignored: %s covers no full day of interest",
                           contract.id, format_currency(amount))
            return contract

        settled_on = self._effective_day(reference_date)
        tx = self._new_transaction(
            TransactionKind.INTEREST_PAYMENT, amount,
            f"Interest paid, renewed for {days} days")
        renewed = replace(
            contract,
            last_paid_date=settled_on,
            segments=self._split_open_segment(contract, settled_on,
                                              contract.loan_amount, contract.interest_rate),
            transactions=contract.transactions + (tx,),
        )
        logger.info("Renewed %s: paid %s covering %d days", contract.id,
                    format_currency(amount), days)
        return renewed

    def extend(self, contract: Contract, days: int, reference_date=None) -> Contract:
        """Push the due date back by ``days``."""
        self._require_active(contract, "extend")
        self._require_positive(days, "days")

        new_due = contract.due_date + timedelta(days=int(days))
        tx = self._new_transaction(
            TransactionKind.RENEWAL, 0,
            f"Due date extended by {days} days to {new_due.strftime(DATE_FORMAT_DISPLAY)}")
        extended = replace(contract, due_date=new_due,
                           transactions=contract.transactions + (tx,))
        logger.info("Extended %s to %s", contract.id, extended.due_date.isoformat())
        return extended

    def adjust_principal(self, contract: Contract, delta, direction,
                         reference_date=None) -> Contract:
        """Lend more against the device or take a partial repayment.

        The open segment is closed the day before the effective date and a
        new segment carrying the new principal starts on it.

        Raises:
            InvalidStateTransitionError: If the contract is not Active.
            ValidationError: If delta is not positive or a decrease would
                leave no principal outstanding.
        """
        self._require_active(contract, "adjust principal of")
        self._require_positive(delta, "delta")
        try:
            direction = Direction(direction)
        except ValueError:
            raise ValidationError("direction must be 'increase' or 'decrease'",
                                  "direction", direction)

        if direction == Direction.INCREASE:
            new_principal = contract.loan_amount + delta
            kind = TransactionKind.PRINCIPAL_INCREASE
            description = f"Principal increased by {format_currency(delta)}"
        else:
            new_principal = contract.loan_amount - delta
            kind = TransactionKind.PRINCIPAL_DECREASE
            description = f"Principal reduced by {format_currency(delta)}"
            if new_principal <= 0:
                raise ValidationError(
                    "Decrease must leave principal outstanding; redeem the contract instead",
                    "delta", delta)

        effective = self._effective_day(reference_date)
        adjusted = replace(
            contract,
            loan_amount=new_principal,
            segments=self._split_open_segment(contract, effective, new_principal,
                                              contract.interest_rate),
            transactions=contract.transactions + (self._new_transaction(kind, delta, description),),
        )
        logger.info("Adjusted principal of %s: %s -> %s", contract.id,
                    format_currency(contract.loan_amount), format_currency(new_principal))
        return adjusted

    def redeem(self, contract: Contract, total, reference_date=None) -> Contract:
        """Close the contract after the customer pays principal plus interest."""
        self._require_active(contract, "redeem")
        if total is None or total < 0:
            raise ValidationError("total cannot be negative", "total", total)

        tx = self._new_transaction(TransactionKind.REDEMPTION, total, "Redeemed in full")
        redeemed = replace(contract, status=ContractStatus.REDEEMED,
                           transactions=contract.transactions + (tx,))
        logger.info("Redeemed %s for %s", contract.id, format_currency(total))
        return redeemed

    def cancel(self, contract: Contract, reference_date=None) -> Contract:
        self._require_active(contract, "cancel")
        tx = self._new_transaction(TransactionKind.CANCELLATION, 0, "Contract cancelled")
        logger.info("Cancelled %s", contract.id)
        return replace(contract, status=ContractStatus.CANCELLED,
                       transactions=contract.transactions + (tx,))

    def forfeit(self, contract: Contract, reference_date=None) -> Contract:
        """Close the contract with the shop keeping the device."""
        self._require_active(contract, "forfeit")
        tx = self._new_transaction(TransactionKind.FORFEITURE, 0,
                                   "Contract forfeited, device retained")
        logger.info("Forfeited %s", contract.id)
        return replace(contract, status=ContractStatus.FORFEITED,
                       transactions=contract.transactions + (tx,))

    def edit_metadata(self, contract: Contract, customer_name: Optional[str] = None,
                      customer_phone: Optional[str] = None, model: Optional[str] = None,
                      notes: Optional[str] = None, interest_rate=None,
                      reference_date=None) -> Contract:
        """Overwrite descriptive fields and, optionally, the interest rate.

        Descriptive fields can be edited in any status. A rate change only
        applies going forward: it needs an Active contract and splits the
        open segment so days already accrued keep their old rate.

        Raises:
            ValidationError: If customer name or model is set to blank, or the
                rate is negative.
            InvalidStateTransitionError: If the rate changes on a closed contract.
        """
        changes = {}
        if customer_name is not None:
            self._require_text(customer_name, "customer_name")
            changes['customer_name'] = customer_name.strip()
        if customer_phone is not None:
            changes['customer_phone'] = customer_phone.strip()
        if model is not None:
            self._require_text(model, "model")
            changes['model'] = model.strip()
        if notes is not None:
            changes['notes'] = notes

        if interest_rate is not None and interest_rate != contract.interest_rate:
            if interest_rate < 0:
                raise ValidationError("interest_rate cannot be negative",
                                      "interest_rate", interest_rate)
            self._require_active(contract, "change the rate of")
            effective = self._effective_day(reference_date)
            changes['interest_rate'] = interest_rate
            changes['segments'] = self._split_open_segment(
                contract, effective, contract.loan_amount, interest_rate)
            changes['transactions'] = contract.transactions + (self._new_transaction(
                TransactionKind.RATE_CHANGE, 0,
                f"Interest rate changed from {contract.interest_rate:g} to {interest_rate:g}"),)
            logger.info("Rate of %s changed from %s to %s effective %s", contract.id,
                        contract.interest_rate, interest_rate, effective.isoformat())

        if not changes:
            return contract
        return replace(contract, **changes)
