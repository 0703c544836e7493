"""PawnMaster: pawn-shop ledger with interest accrual and contract lifecycle."""

__version__ = "2.0.0"
