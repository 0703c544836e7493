"""Centralized configuration for PawnMaster application.

This module contains default values, business rule constants and display
formats used across the ledger, plus the ``LedgerConfig`` value that is
loaded once at startup and handed explicitly to the engine.
"""
from dataclasses import dataclass

# =============================================================================
# CONTRACT DEFAULTS
# =============================================================================

# Default interest rate (currency per 1,000,000 of principal per day)
DEFAULT_INTEREST_RATE = 2000

# Default contract duration in days
DEFAULT_DURATION_DAYS = 30

# =============================================================================
# INTEREST RULES
# =============================================================================

# Interest rates are quoted per this much principal per day
RATE_UNIT = 1_000_000

# =============================================================================
# REFERENCES
# =============================================================================

CONTRACT_REF_PREFIX = "HD"
CUSTOMER_REF_PREFIX = "KH"

# =============================================================================
# DISPLAY FORMATS
# =============================================================================

# Date format for display
DATE_FORMAT_DISPLAY = "%d/%m/%Y"

# =============================================================================
# SETTINGS KEYS
# =============================================================================

SETTING_DEFAULT_RATE = "default_interest_rate"
SETTING_DEFAULT_DURATION = "default_duration_days"

# =============================================================================
# ADVISORY
# =============================================================================

# Longest edge (pixels) of images handed to the advisory backend
ADVISORY_IMAGE_MAX_EDGE = 1024

ADVISORY_IMAGE_QUALITY = 85


@dataclass(frozen=True)
class LedgerConfig:
    """Defaults applied when a new contract is created.

    Attributes:
        default_interest_rate: Rate used when the form leaves it blank.
        default_duration_days: Duration used when the form leaves it blank.
    """
    default_interest_rate: float = DEFAULT_INTEREST_RATE
    default_duration_days: int = DEFAULT_DURATION_DAYS

    @classmethod
    def defaults(cls) -> 'LedgerConfig':
        return cls()
