#!/usr/bin/env python3
"""
Store Service

Talks to the purchase store on behalf of the catalog: fetches product
prices, validates the receipt, submits purchases and follows transaction
updates. Results are applied to catalog models on the owning thread only.

Store and network failures are logged and otherwise absorbed: ownership
simply stays where it was.
"""

import datetime
import json
import logging
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from watchshot.services.dispatch import MainQueue, completed_future


class StoreError(Exception):
    """Raised when the purchase store cannot answer a request"""
    pass


@dataclass(frozen=True)
class Product:
    """Store product metadata"""
    product_identifier: str
    price: Decimal
    price_locale: str
    title: str = ""


@dataclass(frozen=True)
class Receipt:
    """Validated purchase record for one product"""
    product_identifier: str
    transaction_identifier: str
    purchase_date: Optional[datetime.datetime] = None


class TransactionState(Enum):
    PURCHASING = "purchasing"
    DEFERRED = "deferred"
    FAILED = "failed"
    PURCHASED = "purchased"
    RESTORED = "restored"


@dataclass
class Transaction:
    transaction_identifier: str
    product_identifier: str
    state: TransactionState
    quantity: int = 1
    error: Optional[str] = None


TransactionObserver = Callable[[List[Transaction]], None]


class PurchaseStore(ABC):
    """
    Purchase store collaborator.

    Every request is asynchronous and returns a Future. Transaction updates
    are delivered to observers, possibly from another thread.
    """

    def __init__(self):
        self._observers: List[TransactionObserver] = []

    def add_transaction_observer(self, observer: TransactionObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def remove_transaction_observer(self, observer: TransactionObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, transactions: List[Transaction]) -> None:
        for observer in list(self._observers):
            observer(transactions)

    @abstractmethod
    def fetch_products(self, product_identifiers: Iterable[str]) -> Future:
        """Future of the list of Products known to the store"""
        pass

    @abstractmethod
    def submit_purchase(self, product: Product, quantity: int = 1) -> None:
        """Queue a payment; progress is reported to transaction observers"""
        pass

    @abstractmethod
    def finish_transaction(self, transaction: Transaction) -> None:
        """Acknowledge a transaction in a terminal state"""
        pass

    @abstractmethod
    def refresh_receipt(self) -> Future:
        """Future completing once the receipt has been refreshed"""
        pass

    @abstractmethod
    def validate_receipt(self, product_identifiers: Iterable[str]) -> Future:
        """Future of a dict mapping each identifier to its Receipt or None"""
        pass


class FileStore(PurchaseStore):
    """
    Purchase store backed by a local directory.

    Layout:
        products.json: {"<identifier>": {"price": "0.99", "locale": "en_US@currency=USD", "title": "..."}}
        receipt.json:  [{"product_identifier": "...", "transaction_identifier": "...", "purchase_date": "ISO-8601"}]

    Purchases are granted immediately and appended to receipt.json.
    """

    PRODUCTS_FILE = "products.json"
    RECEIPT_FILE = "receipt.json"

    def __init__(self, store_dir: Path, executor: Optional[Executor] = None):
        """
        Initialize the store

        Args:
            store_dir: Directory holding products.json and receipt.json
            executor: Runs requests in the background; requests complete
                synchronously when None
        """
        super().__init__()
        self.logger = logging.getLogger(__name__)
        self.store_dir = store_dir
        self.executor = executor

    def _submit(self, function, *args) -> Future:
        if self.executor is None:
            return completed_future(function, *args)
        return self.executor.submit(function, *args)

    def _read_json(self, filename: str):
        path = self.store_dir / filename
        if not path.exists():
            raise StoreError(f"Store file not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise StoreError(f"Failed to read {path}: {e}")

    def _read_receipt(self) -> List[dict]:
        path = self.store_dir / self.RECEIPT_FILE
        if not path.exists():
            return []
        records = self._read_json(self.RECEIPT_FILE)
        if not isinstance(records, list):
            raise StoreError(f"{path} must hold a list of purchases")
        return records

    def _load_products(self, product_identifiers: Sequence[str]) -> List[Product]:
        listing = self._read_json(self.PRODUCTS_FILE)
        if not isinstance(listing, dict):
            raise StoreError(f"{self.PRODUCTS_FILE} must hold an object")

        products = []
        for identifier in product_identifiers:
            info = listing.get(identifier)
            if info is None:
                self.logger.debug(f"Product not for sale: {identifier}")
                continue
            try:
                products.append(Product(
                    product_identifier=identifier,
                    price=Decimal(str(info['price'])),
                    price_locale=info.get('locale', 'en_US@currency=USD'),
                    title=info.get('title', ''),
                ))
            except (AttributeError, KeyError, TypeError, InvalidOperation) as e:
                raise StoreError(f"Invalid product entry for {identifier}: {e}")
        return products

    def _validate(self, product_identifiers: Sequence[str]) -> Dict[str, Optional[Receipt]]:
        receipts: Dict[str, Optional[Receipt]] = {identifier: None for identifier in product_identifiers}
        for record in self._read_receipt():
            if not isinstance(record, dict):
                raise StoreError(f"Invalid purchase record in {self.RECEIPT_FILE}: {record!r}")
            identifier = record.get('product_identifier')
            if identifier not in receipts:
                continue
            purchase_date = record.get('purchase_date')
            try:
                purchased_at = datetime.datetime.fromisoformat(purchase_date) if purchase_date else None
            except (TypeError, ValueError) as e:
                raise StoreError(f"Invalid purchase date for {identifier}: {e}")
            receipts[identifier] = Receipt(
                product_identifier=identifier,
                transaction_identifier=str(record.get('transaction_identifier', '')),
                purchase_date=purchased_at,
            )
        return receipts

    def _purchase(self, product: Product, quantity: int) -> None:
        purchasing = Transaction(
            transaction_identifier=uuid.uuid4().hex,
            product_identifier=product.product_identifier,
            state=TransactionState.PURCHASING,
            quantity=quantity,
        )
        self._notify([purchasing])

        try:
            records = self._read_receipt()
            records.append({
                'product_identifier': product.product_identifier,
                'transaction_identifier': purchasing.transaction_identifier,
                'purchase_date': datetime.datetime.now(datetime.timezone.utc).isoformat(),
            })
            self.store_dir.mkdir(parents=True, exist_ok=True)
            with open(self.store_dir / self.RECEIPT_FILE, 'w') as f:
                json.dump(records, f, indent=2)
            outcome = replace(purchasing, state=TransactionState.PURCHASED)
        except (StoreError, IOError) as e:
            self.logger.error(f"Purchase of {product.product_identifier} failed: {e}")
            outcome = replace(purchasing, state=TransactionState.FAILED, error=str(e))

        self._notify([outcome])

    def fetch_products(self, product_identifiers: Iterable[str]) -> Future:
        return self._submit(self._load_products, list(product_identifiers))

    def submit_purchase(self, product: Product, quantity: int = 1) -> None:
        self._submit(self._purchase, product, quantity)

    def finish_transaction(self, transaction: Transaction) -> None:
        self.logger.debug(f"Finished transaction {transaction.transaction_identifier} ({transaction.state.value})")

    def refresh_receipt(self) -> Future:
        # The receipt file is the source of truth; refreshing only checks it reads
        return self._submit(self._read_receipt)

    def validate_receipt(self, product_identifiers: Iterable[str]) -> Future:
        return self._submit(self._validate, list(product_identifiers))


class StoreKeeper:
    """
    Applies store results to the catalog.

    Every store callback is handed to the main queue first, so models are
    only mutated when the owning thread drains it.
    """

    def __init__(self, catalog, store: PurchaseStore, main_queue: MainQueue):
        self.logger = logging.getLogger(__name__)
        self.catalog = catalog
        self.store = store
        self.main_queue = main_queue
        self._started = False

    def start(self) -> None:
        """Observe transactions, then check products and the receipt"""
        if not self._started:
            self.store.add_transaction_observer(self._transactions_updated)
            self._started = True

        self.check_products()
        self.check_receipt()

    def stop(self) -> None:
        if self._started:
            self.store.remove_transaction_observer(self._transactions_updated)
            self._started = False

    def check_products(self) -> None:
        """Validate the set of purchasable products with the store"""
        future = self.store.fetch_products(self.catalog.product_identifiers())
        self.main_queue.on_done(future, self._products_received)

    def check_receipt(self) -> None:
        """Validate the receipt, and record which purchases are owned"""
        future = self.store.validate_receipt(self.catalog.product_identifiers())
        self.main_queue.on_done(future, self._receipt_validated)

    def restore_purchases(self) -> None:
        """Refresh the receipt with the store, then re-validate it"""
        future = self.store.refresh_receipt()
        self.main_queue.on_done(future, self._receipt_refreshed)

    def create_purchase(self, product: Product) -> None:
        """Submit a purchase of one unit of the product"""
        self.logger.info(f"Purchasing {product.product_identifier}")
        self.store.submit_purchase(product, quantity=1)

    def _products_received(self, future: Future) -> None:
        try:
            products = future.result()
        except StoreError as e:
            self.logger.warning(f"Product request failed: {e}")
            return

        for product in products:
            model = self.catalog.model_for_product_identifier(product.product_identifier)
            if model is None:
                self.logger.warning(f"Store returned unknown product: {product.product_identifier}")
                continue
            model.product = product

    def _receipt_validated(self, future: Future) -> None:
        try:
            receipts = future.result()
        except StoreError as e:
            self.logger.warning(f"Receipt validation failed: {e}")
            return

        for product_identifier, receipt in receipts.items():
            model = self.catalog.model_for_product_identifier(product_identifier)
            if model is None:
                continue
            model.receipt = receipt

    def _receipt_refreshed(self, future: Future) -> None:
        try:
            future.result()
        except StoreError as e:
            self.logger.warning(f"Receipt refresh failed: {e}")
            return
        self.check_receipt()

    def _transactions_updated(self, transactions: List[Transaction]) -> None:
        # Observers may be called from any thread
        self.main_queue.post(lambda: self._handle_transactions(transactions))

    def _handle_transactions(self, transactions: List[Transaction]) -> None:
        update_receipt = False
        for transaction in transactions:
            state = transaction.state
            if state in (TransactionState.PURCHASING, TransactionState.DEFERRED):
                continue
            elif state is TransactionState.FAILED:
                self.logger.warning(
                    f"Transaction for {transaction.product_identifier} failed: {transaction.error}"
                )
                self.store.finish_transaction(transaction)
            else:
                update_receipt = True
                self.store.finish_transaction(transaction)

        if update_receipt:
            self.check_receipt()
