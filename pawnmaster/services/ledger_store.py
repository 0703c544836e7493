"""In-memory ledger store for PawnMaster.

Holds the canonical customer and contract collections. Filtering by
status and free-text search are computed on read; nothing derived is
stored.
"""
from typing import Dict, List, Optional, Union

from pawnmaster.config import CONTRACT_REF_PREFIX, CUSTOMER_REF_PREFIX
from pawnmaster.data_structures import Contract, ContractStatus, Customer, DisplayStatus
from pawnmaster.exceptions import (
    ContractNotFoundError,
    CustomerNotFoundError,
    ValidationError,
)
from pawnmaster.services.interest_calculator import display_status

ALL = "All"


class LedgerStore:
    """Handles storage and lookup of customers and contracts.

    Contracts are immutable values, so handing them out by reference is
    safe; the only way to change one is ``update_contract``.
    """

    def __init__(self):
        self._customers: Dict[str, Customer] = {}
        self._contracts: Dict[str, Contract] = {}

    def __len__(self):
        return len(self._contracts)

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    @staticmethod
    def _next_ref(prefix: str, existing) -> str:
        seq = len(existing)
        while True:
            seq += 1
            ref = f"{prefix}-{seq:04d}"
            if ref not in existing:
                return ref

    def next_contract_id(self) -> str:
        """Reference the next inserted contract would get, e.g. ``HD-0001``."""
        return self._next_ref(CONTRACT_REF_PREFIX, self._contracts)

    def next_customer_id(self) -> str:
        return self._next_ref(CUSTOMER_REF_PREFIX, self._customers)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def insert_customer(self, customer: Customer) -> Customer:
        if customer.id in self._customers:
            raise ValidationError(f"Customer '{customer.id}' already exists", "id", customer.id)
        self._customers[customer.id] = customer
        return customer

    def get_customer(self, customer_id: str) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def find_customer(self, name: str, phone: str = "") -> Optional[Customer]:
        """Find an existing customer by name and phone, or by phone alone.

        Returns:
            The matching customer, or None.
        """
        name_key = (name or "").strip().lower()
        phone = (phone or "").strip()
        for customer in self._customers.values():
            if customer.name.lower() == name_key and customer.phone == phone:
                return customer
            if phone and customer.phone == phone:
                return customer
        return None

    def list_customers(self, query: str = "") -> List[Customer]:
        """Customers whose name, phone or national id contains ``query``."""
        needle = (query or "").strip().lower()
        if not needle:
            return list(self._customers.values())
        return [
            c for c in self._customers.values()
            if needle in c.name.lower() or needle in c.phone or needle in c.id_card.lower()
        ]

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def insert_contract(self, contract: Contract) -> Contract:
        if contract.id in self._contracts:
            raise ValidationError(f"Contract '{contract.id}' already exists", "id", contract.id)
        if contract.customer_id not in self._customers:
            raise CustomerNotFoundError(contract.customer_id)
        self._contracts[contract.id] = contract
        return contract

    def get_contract(self, contract_id: str) -> Contract:
        contract = self._contracts.get(contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract

    def update_contract(self, contract_id: str, new_value: Contract) -> Contract:
        """Replace a contract by id.

        Raises:
            ContractNotFoundError: If no contract has this id.
            ValidationError: If the new value carries a different id.
        """
        if contract_id not in self._contracts:
            raise ContractNotFoundError(contract_id)
        if new_value.id != contract_id:
            raise ValidationError("Contract id cannot change", "id", new_value.id)
        self._contracts[contract_id] = new_value
        return new_value

    def list_contracts(self, status: Union[str, ContractStatus, DisplayStatus, None] = None,
                       query: str = "", reference_date=None) -> List[Contract]:
        """Contracts matching a display status and a search term, newest first.

        Args:
            status: Display status to keep ("Overdue" included); None or "All"
                keeps every contract.
            query: Case-insensitive substring of customer name or device.
            reference_date: Day used to decide which contracts are overdue.
        """
        wanted = None
        if status is not None and status != ALL:
            try:
                wanted = DisplayStatus(getattr(status, "value", status))
            except ValueError:
                raise ValidationError(f"Unknown status filter '{status}'", "status", status)
        needle = (query or "").strip().lower()

        matches = []
        for contract in reversed(list(self._contracts.values())):
            if wanted is not None and display_status(contract, reference_date) != wanted:
                continue
            if needle and needle not in contract.customer_name.lower() \
                    and needle not in contract.model.lower():
                continue
            matches.append(contract)
        return matches

    def contracts_for_customer(self, customer_id: str) -> List[Contract]:
        return [c for c in self._contracts.values() if c.customer_id == customer_id]

    def overdue_contracts(self, reference_date=None) -> List[Contract]:
        return self.list_contracts(DisplayStatus.OVERDUE, reference_date=reference_date)

    def all_contracts(self) -> List[Contract]:
        return list(self._contracts.values())
