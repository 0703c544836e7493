"""Business logic engine for PawnMaster.

This module provides the PawnEngine class, a facade that ties the ledger
store, the contract lifecycle service and the shop configuration together.

Service Classes:
    - ContractService: Contract lifecycle operations
    - LedgerStore: Canonical customer/contract collections
    - AdvisoryService: Optional valuation and image suggestions
"""
from datetime import datetime
from typing import Callable, Optional

from pawnmaster.config import LedgerConfig
from pawnmaster.data_structures import Accrual, Contract, Customer, DisplayStatus
from pawnmaster.database import SettingsDatabase, save_config, validate_config
from pawnmaster.exceptions import ValidationError
from pawnmaster.logging_setup import get_logger
from pawnmaster.services import AdvisoryService, ContractService, LedgerStore
from pawnmaster.services import interest_calculator

logger = get_logger(__name__)


class PawnEngine:
    """Handles business logic, interfacing with the LedgerStore.

    Every lifecycle method follows the same shape: look the contract up,
    let ContractService build the new value, then write it back with a
    single ``update_contract`` call. A failing operation raises before
    the write, so the store is never left half-updated.

    Attributes:
        store: LedgerStore holding customers and contracts.
        config: LedgerConfig with contract defaults.
        settings_db: Optional SettingsDatabase used by remember_defaults.
    """

    def __init__(self, store: LedgerStore = None, config: LedgerConfig = None,
                 settings_db: SettingsDatabase = None, advisory: AdvisoryService = None,
                 clock: Callable[[], datetime] = None):
        self.store = store or LedgerStore()
        self.config = config or LedgerConfig.defaults()
        self.settings_db = settings_db
        self.clock = clock or datetime.now
        self._contract_service = None
        self._advisory = advisory

    @property
    def contract_service(self):
        """Lazy-load ContractService instance."""
        if self._contract_service is None:
            self._contract_service = ContractService(clock=self.clock)
        return self._contract_service

    @property
    def advisory(self):
        """Lazy-load AdvisoryService instance (no backend by default)."""
        if self._advisory is None:
            self._advisory = AdvisoryService()
        return self._advisory

    def _reference_day(self, reference_date):
        if reference_date is None:
            return self.clock().date()
        return interest_calculator.as_day(reference_date)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_contract(self, customer_name: str, model: str, principal,
                        customer_phone: str = "", customer_address: str = "",
                        customer_id_card: str = "", interest_rate=None,
                        duration_days: int = None, pawn_date=None,
                        is_paperless: bool = False, notes: str = "",
                        customer_id: str = None) -> Contract:
        """Open a contract, registering the customer if they are new.

        Args:
            customer_name: Customer's name (required).
            model: Device description (required).
            principal: Amount lent.
            interest_rate: Rate per 1,000,000/day (default: config).
            duration_days: Days until due (default: config).
            pawn_date: Origination date (default: today).
            customer_id: Pick an existing customer explicitly.

        Returns:
            The new contract, already stored.

        Raises:
            ValidationError: On invalid input; nothing is stored.
            CustomerNotFoundError: If ``customer_id`` is unknown.
        """
        if interest_rate is None:
            interest_rate = self.config.default_interest_rate
        if duration_days is None:
            duration_days = self.config.default_duration_days
        pawn_day = self._reference_day(pawn_date)

        if customer_id is not None:
            customer = self.store.get_customer(customer_id)
            is_new_customer = False
        else:
            customer = self.store.find_customer(customer_name, customer_phone)
            is_new_customer = customer is None
            if is_new_customer:
                customer = Customer(
                    id=self.store.next_customer_id(),
                    name=(customer_name or "").strip(),
                    phone=(customer_phone or "").strip(),
                    address=(customer_address or "").strip(),
                    id_card=(customer_id_card or "").strip(),
                    created_at=self.clock(),
                )

        contract = self.contract_service.create(
            self.store.next_contract_id(), customer, model, principal,
            interest_rate, pawn_day, duration_days,
            is_paperless=is_paperless, notes=notes,
        )

        if is_new_customer:
            self.store.insert_customer(customer)
            logger.info("Registered customer %s (%s)", customer.id, customer.name)
        return self.store.insert_contract(contract)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _apply(self, contract_id: str, operation, *args, **kwargs) -> Contract:
        contract = self.store.get_contract(contract_id)
        updated = operation(contract, *args, **kwargs)
        if updated is contract:
            return contract
        return self.store.update_contract(contract_id, updated)

    def renew(self, contract_id: str, amount, reference_date=None) -> Contract:
        return self._apply(contract_id, self.contract_service.renew, amount,
                           reference_date=reference_date)

    def extend(self, contract_id: str, days: int, reference_date=None) -> Contract:
        return self._apply(contract_id, self.contract_service.extend, days,
                           reference_date=reference_date)

    def adjust_principal(self, contract_id: str, delta, direction,
                         reference_date=None) -> Contract:
        return self._apply(contract_id, self.contract_service.adjust_principal, delta,
                           direction, reference_date=reference_date)

    def redeem(self, contract_id: str, total=None, reference_date=None) -> Contract:
        """Redeem a contract; ``total`` defaults to principal plus interest owed."""
        if total is None:
            contract = self.store.get_contract(contract_id)
            total = interest_calculator.settlement_amount(
                contract, self._reference_day(reference_date))
        return self._apply(contract_id, self.contract_service.redeem, total,
                           reference_date=reference_date)

    def cancel(self, contract_id: str, reference_date=None) -> Contract:
        return self._apply(contract_id, self.contract_service.cancel,
                           reference_date=reference_date)

    def forfeit(self, contract_id: str, reference_date=None) -> Contract:
        return self._apply(contract_id, self.contract_service.forfeit,
                           reference_date=reference_date)

    def edit_metadata(self, contract_id: str, reference_date=None, **fields) -> Contract:
        return self._apply(contract_id, self.contract_service.edit_metadata,
                           reference_date=reference_date, **fields)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def accrual(self, contract_id: str, reference_date=None) -> Accrual:
        contract = self.store.get_contract(contract_id)
        return interest_calculator.accrue(contract, self._reference_day(reference_date))

    def display_status(self, contract_id: str, reference_date=None) -> DisplayStatus:
        contract = self.store.get_contract(contract_id)
        return interest_calculator.display_status(contract, self._reference_day(reference_date))

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def remember_defaults(self, interest_rate, duration_days: int) -> LedgerConfig:
        """Make the last-used rate and duration the defaults for the next contract.

        Values that load_config would reject on the next start (zero or
        negative) are not remembered; the current defaults stay in place.
        """
        config = LedgerConfig(default_interest_rate=interest_rate,
                              default_duration_days=int(duration_days))
        try:
            validate_config(config)
        except ValidationError as e:
            logger.warning("Not remembering defaults: %s", e.message)
            return self.config
        self.config = config
        if self.settings_db is not None:
            save_config(self.settings_db, self.config)
        return self.config

    # ------------------------------------------------------------------
    # Advisory
    # ------------------------------------------------------------------

    def valuation_advice(self, brand: str, model: str, condition: str):
        return self.advisory.get_valuation_advice(brand, model, condition)

    def analyze_device_image(self, image_bytes: bytes) -> Optional[str]:
        return self.advisory.analyze_device_image(image_bytes)
