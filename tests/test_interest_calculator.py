"""Tests for interest accrual, overdue days and display status."""
import os
import sys
import unittest
from datetime import date, datetime, timedelta

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pawnmaster.data_structures import ContractStatus, Customer, DisplayStatus, InterestSegment
from pawnmaster.services.contract_service import ContractService
from pawnmaster.services.interest_calculator import (
    accrue,
    as_day,
    compute_accrual,
    daily_interest,
    days_covered,
    display_status,
    is_overdue,
    round_half_up,
    settlement_amount,
)

D0 = date(2025, 1, 10)


class TestComputeAccrual(unittest.TestCase):

    def test_single_segment_on_start_day_counts_one_day(self):
        seg = InterestSegment(start_date=D0, principal=25_000_000, interest_rate=2000)
        acc = compute_accrual([seg], D0 + timedelta(days=30), ContractStatus.ACTIVE, D0)
        self.assertEqual(acc.total_days, 1)
        self.assertEqual(acc.interest_owed, 50_000)

    def test_ten_inclusive_days(self):
        seg = InterestSegment(start_date=D0, principal=25_000_000, interest_rate=2000)
        acc = compute_accrual([seg], D0 + timedelta(days=30), ContractStatus.ACTIVE,
                              D0 + timedelta(days=9))
        self.assertEqual(acc.total_days, 10)
        self.assertEqual(acc.interest_owed, 500_000)
        self.assertEqual(acc.overdue_days, 0)

    def test_interest_is_additive_across_segments(self):
        first = InterestSegment(start_date=date(2025, 1, 1), principal=10_000_000,
                                interest_rate=2000, end_date=date(2025, 1, 10))
        second = InterestSegment(start_date=date(2025, 1, 11), principal=15_000_000,
                                 interest_rate=2000)
        acc = compute_accrual([first, second], date(2025, 3, 1), ContractStatus.ACTIVE,
                              date(2025, 1, 15))
        self.assertEqual(acc.total_days, 15)
        self.assertEqual(acc.interest_owed, 200_000 + 150_000)

    def test_no_segments(self):
        acc = compute_accrual([], D0, ContractStatus.ACTIVE, D0)
        self.assertEqual(acc.interest_owed, 0)
        self.assertEqual(acc.total_days, 0)

    def test_reference_before_start_yields_zero_days(self):
        seg = InterestSegment(start_date=D0, principal=25_000_000, interest_rate=2000)
        acc = compute_accrual([seg], D0 + timedelta(days=30), ContractStatus.ACTIVE,
                              D0 - timedelta(days=3))
        self.assertEqual(acc.total_days, 0)
        self.assertEqual(acc.interest_owed, 0)

    def test_closed_segment_ending_before_start_is_empty(self):
        seg = InterestSegment(start_date=D0, principal=25_000_000, interest_rate=2000,
                              end_date=D0 - timedelta(days=1))
        acc = compute_accrual([seg], D0, ContractStatus.ACTIVE, D0 + timedelta(days=5))
        self.assertEqual(acc.total_days, 0)

    def test_rounding_is_half_up(self):
        seg = InterestSegment(start_date=D0, principal=250_000, interest_rate=2)
        acc = compute_accrual([seg], D0, ContractStatus.ACTIVE, D0)
        # 0.5 rounds to 1, not to even
        self.assertEqual(acc.interest_owed, 1)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.4999), 2)

    def test_time_of_day_is_ignored(self):
        seg = InterestSegment(start_date=datetime(2025, 1, 10, 23, 59),
                              principal=25_000_000, interest_rate=2000)
        acc = compute_accrual([seg], "2025-02-09", ContractStatus.ACTIVE,
                              "2025-01-19T00:01:00")
        self.assertEqual(acc.total_days, 10)


class TestOverdueDays(unittest.TestCase):

    def setUp(self):
        self.seg = InterestSegment(start_date=D0, principal=25_000_000, interest_rate=2000)
        self.due = D0 + timedelta(days=30)

    def test_overdue_days_past_due(self):
        acc = compute_accrual([self.seg], self.due, ContractStatus.ACTIVE,
                              D0 + timedelta(days=35))
        self.assertEqual(acc.overdue_days, 5)
        self.assertTrue(acc.is_overdue)

    def test_not_overdue_on_due_date(self):
        acc = compute_accrual([self.seg], self.due, ContractStatus.ACTIVE, self.due)
        self.assertEqual(acc.overdue_days, 0)

    def test_closed_contracts_are_never_overdue(self):
        for status in (ContractStatus.REDEEMED, ContractStatus.FORFEITED,
                       ContractStatus.CANCELLED):
            acc = compute_accrual([self.seg], self.due, status, D0 + timedelta(days=60))
            self.assertEqual(acc.overdue_days, 0, status)


class TestPaymentHelpers(unittest.TestCase):

    def test_daily_interest(self):
        self.assertEqual(daily_interest(25_000_000, 2000), 50_000)

    def test_days_covered(self):
        self.assertEqual(days_covered(25_000_000, 2000, 500_000), 10)
        self.assertEqual(days_covered(25_000_000, 2000, 549_999), 10)
        self.assertEqual(days_covered(25_000_000, 2000, 49_999), 0)

    def test_days_covered_with_zero_rate(self):
        self.assertEqual(days_covered(25_000_000, 0, 500_000), 0)

    def test_as_day(self):
        self.assertEqual(as_day("2025-01-10"), D0)
        self.assertEqual(as_day(datetime(2025, 1, 10, 8, 30)), D0)
        with self.assertRaises(TypeError):
            as_day(20250110)


class TestContractViews(unittest.TestCase):

    def setUp(self):
        self.service = ContractService(clock=lambda: datetime(2025, 1, 10, 9, 0))
        customer = Customer(id="KH-0001", name="Nguyen Van A", phone="0901234567")
        self.contract = self.service.create("HD-0001", customer, "iPhone 15 Pro Max",
                                            25_000_000, 2000, D0, 30)

    def test_display_status_overdue_is_derived(self):
        late = D0 + timedelta(days=31)
        self.assertEqual(display_status(self.contract, late), DisplayStatus.OVERDUE)
        self.assertEqual(self.contract.status, ContractStatus.ACTIVE)
        self.assertEqual(display_status(self.contract, D0), DisplayStatus.ACTIVE)
        self.assertTrue(is_overdue(self.contract, late))
        self.assertFalse(self.contract.is_terminal)

    def test_redeemed_contract_is_not_overdue(self):
        redeemed = self.service.redeem(self.contract, 26_550_000)
        self.assertEqual(display_status(redeemed, D0 + timedelta(days=31)),
                         DisplayStatus.REDEEMED)
        self.assertFalse(is_overdue(redeemed, D0 + timedelta(days=31)))
        self.assertTrue(redeemed.is_terminal)
        self.assertTrue(ContractStatus.REDEEMED.is_terminal)

    def test_accrue_skips_settled_segments(self):
        renewed = self.service.renew(self.contract, 500_000,
                                     reference_date=D0 + timedelta(days=9))
        acc = accrue(renewed, D0 + timedelta(days=9))
        self.assertEqual(acc.total_days, 1)
        self.assertEqual(acc.interest_owed, 50_000)
        acc = accrue(renewed, D0 + timedelta(days=13))
        self.assertEqual(acc.total_days, 5)

    def test_settlement_amount(self):
        total = settlement_amount(self.contract, D0 + timedelta(days=9))
        self.assertEqual(total, 25_500_000)


if __name__ == "__main__":
    unittest.main(verbosity=2)
