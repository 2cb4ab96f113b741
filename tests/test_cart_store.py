"""
CartStore tests: scan-driven inserts, duplicate handling, quantity changes,
removal, clearing and change subscriptions, all against the in-memory partition store.
"""
from decimal import Decimal

import pytest

from app.data.partition_store import MemoryPartitionStore
from app.domain.errors import (
    Conflict,
    DuplicateItem,
    InvalidProduct,
    NotFound,
    ProductNotFound,
)
from app.domain.schemas import CartState
from app.repos.cart_repo import CartRepo
from app.services.cart_store import CartStore, DuplicatePolicy
from tests.conftest import PARTITION


class TestAddScannedItem:
    def test_example_scenario(self, cart_store: CartStore):
        """Scan 111, scan 111 again, scan an unknown code."""
        result = cart_store.add_scanned_item("111")

        assert result.created is True
        items = cart_store.get_items()
        assert list(items) == ["0"]
        assert items["0"].product_id == "p1"
        assert items["0"].quantity == 1
        assert items["0"].unit_price == Decimal("12.00")

        with pytest.raises(DuplicateItem) as exc:
            cart_store.add_scanned_item("111")
        assert exc.value.existing.key == "0"
        assert cart_store.get_items() == items

        with pytest.raises(ProductNotFound) as exc:
            cart_store.add_scanned_item("999")
        assert exc.value.barcode == "999"
        assert cart_store.get_items() == items

    def test_distinct_barcodes_get_one_item_each(self, cart_store: CartStore, clock):
        for barcode in ["111", "222", "333"]:
            cart_store.add_scanned_item(barcode)
            clock.advance(1)

        items = cart_store.get_items()
        assert sorted(items) == ["0", "1", "2"]
        assert sorted(i.product_id for i in items.values()) == ["p1", "p2", "p3"]
        assert all(i.quantity == 1 for i in items.values())

    def test_new_item_copies_product_fields(self, cart_store: CartStore, clock):
        item = cart_store.add_scanned_item("333").item

        assert item.name == "Paper cups"
        assert item.barcode == "333"
        assert item.unit_price == Decimal("5.50")
        assert item.added_at == clock.now
        assert item.updated_at == clock.now

    def test_price_is_a_snapshot(self, cart_store: CartStore, catalog):
        cart_store.add_scanned_item("111")
        catalog.products["p1"] = catalog.products["p1"].model_copy(update={"unit_price": Decimal("99.00")})

        assert cart_store.get_items()["0"].unit_price == Decimal("12.00")

    @pytest.mark.parametrize("barcode", ["000", "555"])
    def test_missing_or_zero_price_is_rejected(self, cart_store: CartStore, barcode):
        with pytest.raises(InvalidProduct):
            cart_store.add_scanned_item(barcode)

        assert cart_store.get_items() == {}

    def test_duplicate_leaves_item_untouched(self, cart_store: CartStore, clock):
        cart_store.add_scanned_item("111")
        before = cart_store.get_items()["0"]
        clock.advance(10)

        with pytest.raises(DuplicateItem):
            cart_store.add_scanned_item("111")

        assert cart_store.get_items()["0"] == before

    def test_increment_policy_bumps_quantity(self, repo, catalog, clock):
        store = CartStore(repo, catalog, duplicate_policy=DuplicatePolicy.INCREMENT, clock=clock)
        store.add_scanned_item("111")
        clock.advance(3)

        result = store.add_scanned_item("111")

        assert result.created is False
        assert result.item.key == "0"
        assert result.item.quantity == 2
        assert result.item.updated_at == clock.now
        assert list(store.get_items()) == ["0"]

    def test_keys_are_not_reused_after_removal(self, cart_store: CartStore):
        cart_store.add_scanned_item("111")
        cart_store.add_scanned_item("222")
        cart_store.remove_item("1")

        item = cart_store.add_scanned_item("333").item

        assert item.key == "2"

    def test_duplicate_detected_inside_atomic_step(self, catalog, clock):
        """Another device commits the same product between our read and our write."""

        class InterleavingStore(MemoryPartitionStore):
            before_write = None

            def compare_and_set(self, name, expected_version, value):
                hook, self.before_write = self.before_write, None
                if hook:
                    hook()
                return super().compare_and_set(name, expected_version, value)

        store = InterleavingStore()
        repo = CartRepo(store, PARTITION, max_retries=5, retry_wait_max=0)
        mine = CartStore(repo, catalog, clock=clock)
        theirs = CartStore(repo, catalog, clock=clock)
        store.before_write = lambda: theirs.add_scanned_item("111")

        with pytest.raises(DuplicateItem):
            mine.add_scanned_item("111")

        assert list(mine.get_items()) == ["0"]


class TestStockPolicy:
    def test_stock_untouched_by_default(self, cart_store: CartStore, catalog):
        cart_store.add_scanned_item("111")

        assert catalog.products["p1"].stock == 5

    def test_decrement_on_scan(self, repo, catalog, clock):
        store = CartStore(repo, catalog, decrement_stock_on_scan=True, clock=clock)

        store.add_scanned_item("111")

        assert catalog.products["p1"].stock == 4

    def test_out_of_stock_is_rejected(self, repo, catalog, clock):
        store = CartStore(repo, catalog, decrement_stock_on_scan=True, clock=clock)
        catalog.products["p2"] = catalog.products["p2"].model_copy(update={"stock": 0})

        with pytest.raises(InvalidProduct) as exc:
            store.add_scanned_item("222")

        assert exc.value.reason == "out of stock"
        assert store.get_items() == {}


class TestQuantityAndRemoval:
    def test_set_quantity_keeps_other_fields(self, cart_store: CartStore, clock):
        original = cart_store.add_scanned_item("333").item
        clock.advance(30)

        item = cart_store.set_quantity("0", 3)

        assert item.quantity == 3
        assert item.updated_at == clock.now
        assert item.added_at == original.added_at
        assert item.unit_price == original.unit_price
        assert cart_store.get_items()["0"] == item

    def test_set_quantity_on_missing_key(self, cart_store: CartStore):
        with pytest.raises(NotFound):
            cart_store.set_quantity("7", 2)

    def test_zero_quantity_equals_remove(self, catalog, clock):
        states = []
        for action in ("set_zero", "remove"):
            store = CartStore(CartRepo(MemoryPartitionStore(), PARTITION), catalog, clock=clock)
            store.add_scanned_item("111")
            store.add_scanned_item("222")
            if action == "set_zero":
                assert store.set_quantity("0", 0) is None
            else:
                store.remove_item("0")
            states.append(store.repo.get_state())

        assert states[0] == states[1]
        assert list(states[0].items) == ["1"]

    def test_negative_quantity_removes(self, cart_store: CartStore):
        cart_store.add_scanned_item("111")

        assert cart_store.set_quantity("0", -2) is None
        assert cart_store.get_items() == {}

    def test_remove_missing_key_is_strict(self, cart_store: CartStore):
        with pytest.raises(NotFound) as exc:
            cart_store.remove_item("0")
        assert exc.value.key == "0"

    def test_clear_resets_keys(self, cart_store: CartStore):
        cart_store.add_scanned_item("111")
        cart_store.add_scanned_item("222")

        cart_store.clear()

        assert cart_store.get_items() == {}
        assert cart_store.add_scanned_item("333").item.key == "0"

    def test_clear_on_empty_cart(self, cart_store: CartStore):
        cart_store.clear()

        assert cart_store.get_items() == {}


class TestKeyAssignment:
    def test_first_key_is_zero(self):
        assert CartState().next_key() == "0"

    def test_non_numeric_keys_are_ignored(self, clock):
        item = {
            "key": "x",
            "product_id": "p",
            "name": "n",
            "barcode": "b",
            "unit_price": "1.00",
            "quantity": 1,
            "added_at": clock.now.isoformat(),
            "updated_at": clock.now.isoformat(),
        }
        state = CartState.from_raw({"items": {"abc": item, "4": {**item, "key": "4"}}})

        assert state.next_key() == "5"

    def test_non_ascii_digit_keys_are_ignored(self, clock):
        item = {
            "key": "2",
            "product_id": "p",
            "name": "n",
            "barcode": "b",
            "unit_price": "1.00",
            "quantity": 1,
            "added_at": clock.now.isoformat(),
            "updated_at": clock.now.isoformat(),
        }
        state = CartState.from_raw({"items": {"\u00b2": item, "2": item}})

        assert state.next_key() == "3"

    def test_sequence_wins_over_current_keys(self):
        assert CartState(sequence=9).next_key() == "9"


class TestConflicts:
    def test_conflict_after_bounded_retries(self, catalog, clock):
        class AlwaysStale(MemoryPartitionStore):
            attempts = 0

            def compare_and_set(self, name, expected_version, value):
                self.attempts += 1
                return False

        store = AlwaysStale()
        cart = CartStore(CartRepo(store, PARTITION, max_retries=3, retry_wait_max=0), catalog, clock=clock)

        with pytest.raises(Conflict) as exc:
            cart.add_scanned_item("111")

        assert store.attempts == 3
        assert exc.value.attempts == 3
        assert store.read(PARTITION).value is None

    def test_retry_after_one_stale_write(self, catalog, clock):
        class StaleOnce(MemoryPartitionStore):
            failed = False

            def compare_and_set(self, name, expected_version, value):
                if not self.failed:
                    self.failed = True
                    return False
                return super().compare_and_set(name, expected_version, value)

        cart = CartStore(CartRepo(StaleOnce(), PARTITION, max_retries=3, retry_wait_max=0), catalog, clock=clock)

        assert cart.add_scanned_item("111").item.key == "0"


class TestSubscribe:
    def test_receives_current_and_changes(self, cart_store: CartStore):
        seen = []
        cart_store.subscribe(lambda items: seen.append(sorted(items)))

        cart_store.add_scanned_item("111")
        cart_store.add_scanned_item("222")
        cart_store.remove_item("0")

        assert seen == [[], ["0"], ["0", "1"], ["1"]]

    def test_failed_scan_emits_nothing(self, cart_store: CartStore):
        seen = []
        cart_store.subscribe(seen.append)

        with pytest.raises(ProductNotFound):
            cart_store.add_scanned_item("999")

        assert seen == [{}]

    def test_no_calls_after_unsubscribe(self, cart_store: CartStore):
        seen = []
        unsubscribe = cart_store.subscribe(seen.append)
        unsubscribe()

        cart_store.add_scanned_item("111")

        assert seen == [{}]

    def test_mutation_from_inside_callback(self, cart_store: CartStore):
        """A listener that clears the cart whenever it sees an item must not deadlock."""
        seen = []

        def on_change(items):
            seen.append(len(items))
            if items:
                cart_store.clear()

        cart_store.subscribe(on_change)
        cart_store.add_scanned_item("111")

        assert cart_store.get_items() == {}
        assert seen == [0, 1, 0]

    def test_failing_listener_does_not_fail_the_write(self, cart_store: CartStore):
        seen = []

        def broken(items):
            if items:
                raise RuntimeError("display crashed")

        cart_store.subscribe(broken)
        cart_store.subscribe(lambda items: seen.append(sorted(items)))

        result = cart_store.add_scanned_item("111")

        assert result.created is True
        assert list(cart_store.get_items()) == ["0"]
        assert seen == [[], ["0"]]
