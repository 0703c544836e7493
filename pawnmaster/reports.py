"""
Report generation module for PawnMaster.
Builds the dashboard figures and tabular views of the ledger.
"""
from datetime import timedelta

import pandas as pd

from pawnmaster.data_structures import ContractStatus, PortfolioSummary
from pawnmaster.services.interest_calculator import accrue, as_day, display_status, today

CONTRACT_COLUMNS = [
    "id", "customer_id", "customer_name", "customer_phone", "model", "principal",
    "interest_rate", "pawn_date", "due_date", "last_paid_date", "status",
    "display_status", "is_paperless", "interest_owed", "total_days", "overdue_days",
]

TRANSACTION_COLUMNS = ["contract_id", "id", "kind", "timestamp", "amount", "description"]


class PortfolioReport:
    def __init__(self, store):
        self.store = store

    @staticmethod
    def _ref(reference_date):
        return as_day(reference_date) if reference_date is not None else today()

    def contracts_frame(self, reference_date=None) -> pd.DataFrame:
        """One row per contract with its accrual as of ``reference_date``."""
        ref = self._ref(reference_date)
        rows = []
        for c in self.store.all_contracts():
            accrual = accrue(c, ref)
            rows.append({
                "id": c.id,
                "customer_id": c.customer_id,
                "customer_name": c.customer_name,
                "customer_phone": c.customer_phone,
                "model": c.model,
                "principal": c.loan_amount,
                "interest_rate": c.interest_rate,
                "pawn_date": pd.Timestamp(c.pawn_date),
                "due_date": pd.Timestamp(c.due_date),
                "last_paid_date": pd.Timestamp(c.last_paid_date),
                "status": ContractStatus(c.status).value,
                "display_status": display_status(c, ref).value,
                "is_paperless": c.is_paperless,
                "interest_owed": accrual.interest_owed,
                "total_days": accrual.total_days,
                "overdue_days": accrual.overdue_days,
            })
        return pd.DataFrame(rows, columns=CONTRACT_COLUMNS)

    def transactions_frame(self, contract_id=None) -> pd.DataFrame:
        """Flattened transaction history, newest first."""
        if contract_id is not None:
            contracts = [self.store.get_contract(contract_id)]
        else:
            contracts = self.store.all_contracts()

        rows = [
            {
                "contract_id": c.id,
                "id": tx.id,
                "kind": getattr(tx.kind, "value", tx.kind),
                "timestamp": pd.Timestamp(tx.timestamp),
                "amount": tx.amount,
                "description": tx.description,
            }
            for c in contracts for tx in c.transactions
        ]
        df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
        if df.empty:
            return df
        # equal timestamps: last appended first
        df = df.iloc[::-1].sort_values(by="timestamp", ascending=False, kind="stable")
        return df.reset_index(drop=True)

    def summary(self, reference_date=None) -> PortfolioSummary:
        """Dashboard totals over Active contracts."""
        ref = self._ref(reference_date)
        df = self.contracts_frame(ref)
        active = df[df["status"] == ContractStatus.ACTIVE.value]
        if active.empty:
            return PortfolioSummary(0, 0, 0, 0, 0)

        return PortfolioSummary(
            total_principal=float(active["principal"].sum()),
            total_interest=int(active["interest_owed"].sum()),
            active_count=len(active),
            overdue_count=int((active["overdue_days"] > 0).sum()),
            due_today_count=int((active["due_date"] == pd.Timestamp(ref)).sum()),
        )

    def daily_pawn_volume(self, days: int = 7, reference_date=None) -> pd.DataFrame:
        """Principal lent and contracts opened per day over the last ``days`` days.

        Returns:
            DataFrame indexed by day with ``amount`` and ``count`` columns;
            days without new contracts show zeros.
        """
        ref = self._ref(reference_date)
        start = ref - timedelta(days=days - 1)
        index = pd.date_range(start=start, end=ref, freq="D", name="day")

        df = self.contracts_frame(ref)
        if df.empty:
            return pd.DataFrame({"amount": 0.0, "count": 0}, index=index)
        df = df[(df["pawn_date"] >= pd.Timestamp(start)) & (df["pawn_date"] <= pd.Timestamp(ref))]
        grouped = df.groupby("pawn_date").agg(amount=("principal", "sum"), count=("id", "count"))
        result = grouped.reindex(index, fill_value=0)
        result["count"] = result["count"].astype(int)
        return result
