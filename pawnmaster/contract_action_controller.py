"""Contract Action Controller for PawnMaster.

This module sits between the pawn-shop screens and the engine. It parses
raw form input, runs the requested action and reports the outcome as a
Result so that screens never have to catch ledger exceptions themselves.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pawnmaster.data_structures import Contract
from pawnmaster.engine import PawnEngine
from pawnmaster.exceptions import PawnMasterError, ValidationError
from pawnmaster.logging_setup import get_logger
from pawnmaster.result import ErrorType, Result
from pawnmaster.services import interest_calculator

logger = get_logger(__name__)

_NON_DIGITS = re.compile(r"\D")
_DOT_GROUPED = re.compile(r"^\d{1,3}(\.\d{3})+$")


def parse_amount(value) -> int:
    """Parse a money amount typed with thousands separators ("25.000.000")."""
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    digits = _NON_DIGITS.sub("", str(value))
    return int(digits) if digits else 0


def parse_rate(value) -> float:
    """Parse an interest rate; a comma is accepted as the decimal mark.

    Amounts on the same forms use dots as thousands separators, so a rate
    such as "2.000" could mean 2000 or 2. It is rejected instead of guessed;
    type "2000" or "2,5".
    """
    if isinstance(value, (int, float)):
        return value
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError("Interest rate is required", "interest_rate", value)
    if _DOT_GROUPED.match(raw):
        raise ValidationError(
            f"'{value}' is ambiguous; type the rate without thousands separators",
            "interest_rate", value)
    text = raw.replace(",", ".")
    try:
        rate = float(text)
    except ValueError:
        raise ValidationError(f"'{value}' is not a valid interest rate", "interest_rate", value)
    return int(rate) if rate.is_integer() else rate


@dataclass
class RenewalPreview:
    """Figures shown on the renewal screen."""
    suggested_amount: int
    suggested_days: int
    daily_interest: float
    amount: int
    days_covered: int

    @property
    def can_submit(self) -> bool:
        return self.days_covered > 0


@dataclass
class RedemptionPreview:
    principal: float
    interest_owed: int
    total: float


class ContractActionController:
    """Controller for contract actions triggered from the shop screens.

    Attributes:
        engine: PawnEngine performing the actual operations.
        on_refresh: Callback invoked after any successful change.
    """

    def __init__(self, engine: PawnEngine, on_refresh: Callable[[Contract], None] = None):
        """Initialize ContractActionController.

        Args:
            engine: PawnEngine instance.
            on_refresh: Optional callback receiving the updated contract.
        """
        self.engine = engine
        self.on_refresh = on_refresh

    def _run(self, action: Callable[[], Any], refresh: bool = True) -> Result:
        try:
            value = action()
        except PawnMasterError as e:
            result = Result.from_exception(e)
            if result.error_type == ErrorType.DATABASE:
                logger.error("Contract action failed: %s", e)
            return result

        if refresh and self.on_refresh and isinstance(value, Contract):
            self.on_refresh(value)
        return Result.ok(value)

    # ------------------------------------------------------------------
    # Pawn form
    # ------------------------------------------------------------------

    def submit_pawn_form(self, form: Dict[str, Any]) -> Result:
        """Create a contract from the pawn form.

        Blank rate or duration fall back to the shop defaults. On success
        the rate and duration used become the new defaults.
        """
        def action():
            rate = form.get("interest_rate")
            rate = self.engine.config.default_interest_rate if rate in (None, "") \
                else parse_rate(rate)
            duration = form.get("duration")
            duration = self.engine.config.default_duration_days if duration in (None, "") \
                else parse_amount(duration)

            contract = self.engine.create_contract(
                customer_name=form.get("customer_name", ""),
                model=form.get("model", ""),
                principal=parse_amount(form.get("loan_amount")),
                customer_phone=form.get("customer_phone", ""),
                customer_address=form.get("customer_address", ""),
                customer_id_card=form.get("customer_id_card", ""),
                interest_rate=rate,
                duration_days=duration,
                pawn_date=form.get("pawn_date") or None,
                is_paperless=bool(form.get("is_paperless", False)),
                notes=form.get("notes", ""),
                customer_id=form.get("customer_id") or None,
            )
            self.engine.remember_defaults(rate, duration)
            return contract

        return self._run(action)

    # ------------------------------------------------------------------
    # Renewal
    # ------------------------------------------------------------------

    def preview_renewal(self, contract_id: str, amount_text=None,
                        reference_date=None) -> Result:
        """Suggested payment and the days a typed amount would cover.

        With no amount typed, the suggested amount (all interest owed) is
        used, like the renewal screen prefills it.
        """
        def action():
            contract = self.engine.store.get_contract(contract_id)
            accrual = self.engine.accrual(contract_id, reference_date)
            amount = accrual.interest_owed if amount_text in (None, "") \
                else parse_amount(amount_text)
            return RenewalPreview(
                suggested_amount=accrual.interest_owed,
                suggested_days=accrual.total_days,
                daily_interest=interest_calculator.daily_interest(
                    contract.loan_amount, contract.interest_rate),
                amount=amount,
                days_covered=interest_calculator.days_covered(
                    contract.loan_amount, contract.interest_rate, amount),
            )

        return self._run(action, refresh=False)

    def submit_renewal(self, contract_id: str, amount_text, reference_date=None) -> Result:
        preview = self.preview_renewal(contract_id, amount_text, reference_date)
        if not preview:
            return preview
        if not preview.value.can_submit:
            return Result.fail("Amount does not cover a single day of interest",
                               ErrorType.VALIDATION)
        return self._run(lambda: self.engine.renew(contract_id, preview.value.amount,
                                                   reference_date=reference_date))

    def extend_contract(self, contract_id: str, days_text, reference_date=None) -> Result:
        return self._run(lambda: self.engine.extend(contract_id, parse_amount(days_text),
                                                    reference_date=reference_date))

    # ------------------------------------------------------------------
    # Principal / redemption / closing
    # ------------------------------------------------------------------

    def submit_principal_change(self, contract_id: str, direction: str, amount_text,
                                reference_date=None) -> Result:
        amount = parse_amount(amount_text)
        if amount <= 0:
            return Result.fail("Enter an amount greater than zero", ErrorType.VALIDATION)
        return self._run(lambda: self.engine.adjust_principal(
            contract_id, amount, direction, reference_date=reference_date))

    def preview_redemption(self, contract_id: str, reference_date=None) -> Result:
        def action():
            contract = self.engine.store.get_contract(contract_id)
            interest = self.engine.accrual(contract_id, reference_date).interest_owed
            return RedemptionPreview(principal=contract.loan_amount, interest_owed=interest,
                                     total=contract.loan_amount + interest)

        return self._run(action, refresh=False)

    def submit_redemption(self, contract_id: str, total_text=None,
                          reference_date=None) -> Result:
        """Redeem with the typed total, or the computed settlement if blank.

        Typed text without any digits is rejected rather than read as 0.
        """
        total: Optional[int] = None
        if total_text not in (None, ""):
            total = parse_amount(total_text)
            if total <= 0:
                return Result.fail("Enter the amount received, or leave it blank",
                                   ErrorType.VALIDATION)
        return self._run(lambda: self.engine.redeem(contract_id, total,
                                                    reference_date=reference_date))

    def cancel_contract(self, contract_id: str) -> Result:
        return self._run(lambda: self.engine.cancel(contract_id))

    def forfeit_contract(self, contract_id: str) -> Result:
        return self._run(lambda: self.engine.forfeit(contract_id))

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def submit_edit(self, contract_id: str, edit_data: Dict[str, Any],
                    reference_date=None) -> Result:
        """Save the contract edit form.

        Only keys present in ``edit_data`` are changed.
        """
        def action():
            fields = {}
            for key in ("customer_name", "customer_phone", "model", "notes"):
                if key in edit_data:
                    fields[key] = edit_data[key]
            if edit_data.get("interest_rate") not in (None, ""):
                fields["interest_rate"] = parse_rate(edit_data["interest_rate"])
            return self.engine.edit_metadata(contract_id, reference_date=reference_date,
                                             **fields)

        return self._run(action)
