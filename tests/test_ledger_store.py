"""Tests for LedgerStore lookups, references and filtering."""
import os
import sys
import unittest
from dataclasses import replace
from datetime import date, datetime, timedelta

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pawnmaster.data_structures import ContractStatus, Customer, DisplayStatus
from pawnmaster.exceptions import (
    ContractNotFoundError,
    CustomerNotFoundError,
    NotFoundError,
    ValidationError,
)
from pawnmaster.services.contract_service import ContractService
from pawnmaster.services.ledger_store import LedgerStore

D0 = date(2025, 1, 10)


class TestLedgerStore(unittest.TestCase):

    def setUp(self):
        self.store = LedgerStore()
        self.service = ContractService(clock=lambda: datetime(2025, 1, 10, 9, 0))
        self.alice = self.store.insert_customer(
            Customer(id="KH-0001", name="Nguyen Van A", phone="0901234567", id_card="079123"))
        self.bob = self.store.insert_customer(
            Customer(id="KH-0002", name="Tran Thi B", phone="0987654321"))

        self.c1 = self.store.insert_contract(self.service.create(
            "HD-0001", self.alice, "iPhone 15 Pro Max", 25_000_000, 2000, D0, 30))
        self.c2 = self.store.insert_contract(self.service.create(
            "HD-0002", self.bob, "Samsung Galaxy S24", 12_000_000, 2000,
            D0 - timedelta(days=40), 30))
        self.c3 = self.store.insert_contract(self.service.redeem(self.service.create(
            "HD-0003", self.alice, "iPad Air", 8_000_000, 2000, D0, 30), 8_000_000))

    def test_next_references(self):
        self.assertEqual(self.store.next_contract_id(), "HD-0004")
        self.assertEqual(self.store.next_customer_id(), "KH-0003")
        self.assertEqual(LedgerStore().next_contract_id(), "HD-0001")

    def test_next_reference_skips_taken(self):
        store = LedgerStore()
        store.insert_customer(Customer(id="KH-0002", name="Le Van C"))
        self.assertEqual(store.next_customer_id(), "KH-0003")

    def test_get_unknown_contract(self):
        with self.assertRaises(ContractNotFoundError):
            self.store.get_contract("HD-9999")
        with self.assertRaises(NotFoundError):
            self.store.get_customer("KH-9999")

    def test_duplicate_inserts(self):
        with self.assertRaises(ValidationError):
            self.store.insert_contract(self.c1)
        with self.assertRaises(ValidationError):
            self.store.insert_customer(self.alice)

    def test_contract_needs_known_customer(self):
        stranger = Customer(id="KH-0099", name="Stranger")
        contract = self.service.create("HD-0010", stranger, "Pixel 8", 5_000_000, 2000, D0, 30)
        with self.assertRaises(CustomerNotFoundError):
            self.store.insert_contract(contract)
        self.assertEqual(len(self.store), 3)

    def test_update_contract(self):
        renamed = replace(self.c1, notes="Box included")
        self.store.update_contract("HD-0001", renamed)
        self.assertEqual(self.store.get_contract("HD-0001").notes, "Box included")

        with self.assertRaises(ContractNotFoundError):
            self.store.update_contract("HD-9999", renamed)
        with self.assertRaises(ValidationError):
            self.store.update_contract("HD-0002", renamed)

    def test_find_customer(self):
        self.assertIs(self.store.find_customer("nguyen van a", "0901234567"), self.alice)
        self.assertIs(self.store.find_customer("Someone Else", "0987654321"), self.bob)
        self.assertIsNone(self.store.find_customer("Nguyen Van A", ""))
        self.assertIsNone(self.store.find_customer("Le Van C", "0900000000"))

    def test_list_customers(self):
        self.assertEqual(len(self.store.list_customers()), 2)
        self.assertEqual(self.store.list_customers("tran"), [self.bob])
        self.assertEqual(self.store.list_customers("079123"), [self.alice])
        self.assertEqual(self.store.list_customers("0987"), [self.bob])

    def test_list_all_newest_first(self):
        ids = [c.id for c in self.store.list_contracts(reference_date=D0)]
        self.assertEqual(ids, ["HD-0003", "HD-0002", "HD-0001"])
        self.assertEqual(len(self.store.list_contracts("All", reference_date=D0)), 3)

    def test_filter_by_display_status(self):
        active = self.store.list_contracts(DisplayStatus.ACTIVE, reference_date=D0)
        overdue = self.store.list_contracts("Overdue", reference_date=D0)
        redeemed = self.store.list_contracts(ContractStatus.REDEEMED, reference_date=D0)
        self.assertEqual([c.id for c in active], ["HD-0001"])
        self.assertEqual([c.id for c in overdue], ["HD-0002"])
        self.assertEqual([c.id for c in redeemed], ["HD-0003"])
        self.assertEqual(self.store.list_contracts("Forfeited", reference_date=D0), [])

    def test_unknown_status_filter(self):
        with self.assertRaises(ValidationError):
            self.store.list_contracts("Lost")

    def test_search_by_customer_or_model(self):
        self.assertEqual([c.id for c in self.store.list_contracts(query="galaxy")], ["HD-0002"])
        self.assertEqual([c.id for c in self.store.list_contracts(query="NGUYEN")],
                         ["HD-0003", "HD-0001"])
        active_ipad = self.store.list_contracts("Active", query="ipad", reference_date=D0)
        self.assertEqual(active_ipad, [])

    def test_overdue_and_customer_helpers(self):
        self.assertEqual([c.id for c in self.store.overdue_contracts(D0)], ["HD-0002"])
        self.assertEqual([c.id for c in self.store.contracts_for_customer("KH-0001")],
                         ["HD-0001", "HD-0003"])
        self.assertEqual(len(self.store.all_contracts()), 3)


if __name__ == "__main__":
    unittest.main(verbosity=2)
