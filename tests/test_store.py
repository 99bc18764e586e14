import json
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from watchshot.services.dispatch import MainQueue, completed_future
from watchshot.services.ownership import Ownership
from watchshot.services.store import (
    FileStore,
    Product,
    PurchaseStore,
    StoreError,
    StoreKeeper,
    Transaction,
    TransactionState,
)


class RecordingStore(PurchaseStore):
    """Store answering from memory and counting requests"""

    def __init__(self, products=(), receipts=None):
        super().__init__()
        self.products = list(products)
        self.receipts = receipts or {}
        self.validations = 0
        self.finished = []
        self.purchases = []

    def fetch_products(self, product_identifiers):
        return completed_future(lambda: [p for p in self.products if p.product_identifier in product_identifiers])

    def submit_purchase(self, product, quantity=1):
        self.purchases.append((product, quantity))

    def finish_transaction(self, transaction):
        self.finished.append(transaction)

    def refresh_receipt(self):
        return completed_future(lambda: None)

    def validate_receipt(self, product_identifiers):
        self.validations += 1
        return completed_future(lambda: {i: self.receipts.get(i) for i in product_identifiers})


def transaction(state, identifier="com.example.38.steel_link"):
    return Transaction(f"txn-{state.value}", identifier, state)


def test_fetch_products(store_dir):
    store = FileStore(store_dir)
    products = store.fetch_products(["com.example.38.steel_link", "com.example.gone"]).result()
    assert products == [
        Product("com.example.38.steel_link", Decimal("0.99"), "en_US@currency=USD", "Steel Link"),
    ]


def test_fetch_products_without_listing(tmp_path):
    future = FileStore(tmp_path).fetch_products(["com.example.38.steel_link"])
    with pytest.raises(StoreError, match="not found"):
        future.result()


def test_fetch_products_with_bad_price(store_dir):
    (store_dir / "products.json").write_text(json.dumps({"com.example.p": {"price": "free"}}))
    with pytest.raises(StoreError, match="Invalid product"):
        FileStore(store_dir).fetch_products(["com.example.p"]).result()


def test_validate_receipt(store_dir):
    (store_dir / "receipt.json").write_text(json.dumps([
        {"product_identifier": "com.example.38.steel_link", "transaction_identifier": "t1",
         "purchase_date": "2024-03-01T10:00:00+00:00"},
        {"product_identifier": "com.example.other", "transaction_identifier": "t2"},
    ]))
    receipts = FileStore(store_dir).validate_receipt(
        ["com.example.38.steel_link", "com.example.38.edition_gold"]
    ).result()
    assert receipts["com.example.38.edition_gold"] is None
    receipt = receipts["com.example.38.steel_link"]
    assert receipt.transaction_identifier == "t1"
    assert receipt.purchase_date.year == 2024


def test_validate_receipt_without_file(store_dir):
    receipts = FileStore(store_dir).validate_receipt(["com.example.38.steel_link"]).result()
    assert receipts == {"com.example.38.steel_link": None}


def test_validate_receipt_with_bad_record(store_dir):
    (store_dir / "receipt.json").write_text(json.dumps(["not-a-record"]))
    with pytest.raises(StoreError, match="Invalid purchase record"):
        FileStore(store_dir).validate_receipt(["com.example.38.steel_link"]).result()


def test_bad_receipt_record_leaves_products_applied(catalog, small, store_dir):
    (store_dir / "receipt.json").write_text(json.dumps(["not-a-record"]))
    queue = MainQueue()
    StoreKeeper(catalog, FileStore(store_dir), queue).start()

    assert queue.drain() == 2
    steel = small.all_models[1]
    assert steel.product is not None
    assert steel.receipt is None
    assert catalog.resolver.resolve(steel) is Ownership.FOR_SALE


def test_results_apply_only_when_drained(catalog, small, store_dir):
    queue = MainQueue()
    keeper = StoreKeeper(catalog, FileStore(store_dir), queue)
    steel = small.all_models[1]

    keeper.start()
    assert steel.product is None
    assert catalog.resolver.resolve(steel) is Ownership.UNAVAILABLE

    queue.drain()
    assert steel.product.price == Decimal("0.99")
    assert catalog.resolver.resolve(steel) is Ownership.FOR_SALE
    assert [m.filename_suffix for m in small.models] == ["sport_white", "steel_link", "edition_gold"]


def test_background_store_results_wait_for_drain(catalog, small, store_dir):
    queue = MainQueue()
    with ThreadPoolExecutor(max_workers=2) as executor:
        keeper = StoreKeeper(catalog, FileStore(store_dir, executor=executor), queue)
        keeper.start()
    assert small.all_models[1].product is None

    assert queue.drain() == 2
    assert small.all_models[1].product is not None


def test_store_failure_leaves_ownership(catalog, small, tmp_path):
    queue = MainQueue()
    StoreKeeper(catalog, FileStore(tmp_path / "missing"), queue).start()
    queue.drain()
    assert all(model.product is None for model in small.all_models)


def test_purchase_grants_ownership(catalog, small, store_dir):
    queue = MainQueue()
    store = FileStore(store_dir)
    keeper = StoreKeeper(catalog, store, queue)
    keeper.start()
    queue.drain()

    steel = small.all_models[1]
    keeper.create_purchase(steel.product)
    while queue.drain():
        pass

    assert catalog.resolver.resolve(steel) is Ownership.OWNED
    records = json.loads((store_dir / "receipt.json").read_text())
    assert [r["product_identifier"] for r in records] == ["com.example.38.steel_link"]


def test_restore_purchases(catalog, small, store_dir):
    queue = MainQueue()
    keeper = StoreKeeper(catalog, FileStore(store_dir), queue)
    keeper.start()
    queue.drain()

    (store_dir / "receipt.json").write_text(json.dumps([
        {"product_identifier": "com.example.38.edition_gold", "transaction_identifier": "t9"},
    ]))
    keeper.restore_purchases()
    while queue.drain():
        pass

    assert small.all_models[3].receipt.transaction_identifier == "t9"


def test_transaction_batch_checks_receipt_once(catalog):
    queue = MainQueue()
    store = RecordingStore()
    keeper = StoreKeeper(catalog, store, queue)
    keeper.start()
    queue.drain()
    assert store.validations == 1

    store._notify([
        transaction(TransactionState.PURCHASING),
        transaction(TransactionState.PURCHASED),
        transaction(TransactionState.RESTORED, "com.example.38.edition_gold"),
    ])
    assert store.validations == 1
    queue.drain()

    assert store.validations == 2
    assert [t.state for t in store.finished] == [TransactionState.PURCHASED, TransactionState.RESTORED]


def test_pending_transactions_are_left_open(catalog):
    queue = MainQueue()
    store = RecordingStore()
    StoreKeeper(catalog, store, queue).start()
    queue.drain()

    store._notify([transaction(TransactionState.PURCHASING), transaction(TransactionState.DEFERRED)])
    queue.drain()
    assert store.finished == []
    assert store.validations == 1


def test_failed_transaction_is_finished_without_receipt_check(catalog):
    queue = MainQueue()
    store = RecordingStore()
    StoreKeeper(catalog, store, queue).start()
    queue.drain()

    failed = transaction(TransactionState.FAILED)
    store._notify([failed])
    queue.drain()
    assert store.finished == [failed]
    assert store.validations == 1


def test_stop_detaches_observer(catalog):
    queue = MainQueue()
    store = RecordingStore()
    keeper = StoreKeeper(catalog, store, queue)
    keeper.start()
    keeper.stop()
    queue.drain()

    store._notify([transaction(TransactionState.PURCHASED)])
    assert queue.drain() == 0


def test_create_purchase_buys_one(catalog):
    store = RecordingStore()
    keeper = StoreKeeper(catalog, store, MainQueue())
    product = Product("com.example.38.steel_link", Decimal("0.99"), "en_US@currency=USD")
    keeper.create_purchase(product)
    assert store.purchases == [(product, 1)]
