"""Services package for PawnMaster business logic.

This package contains the interest calculator, the contract lifecycle
service, the in-memory ledger store and the advisory wrapper.
"""

from .contract_service import ContractService
from .ledger_store import LedgerStore
from .advisory import AdvisoryService, AdvisoryBackend, NullAdvisoryBackend
from .interest_calculator import (
    accrue,
    compute_accrual,
    days_covered,
    display_status,
    settlement_amount,
)

__all__ = ['ContractService', 'LedgerStore', 'AdvisoryService', 'AdvisoryBackend',
           'NullAdvisoryBackend', 'accrue', 'compute_accrual', 'days_covered',
           'display_status', 'settlement_amount']
