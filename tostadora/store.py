"""
State Store
Owns the application state document and applies every mutation to it.

Each mutation builds a new document, replaces the current one, writes it to
the local store (unless the save lock is on) and, when a sync id is set,
upserts it to the cloud table. Persistence failures are logged and never undo
the in-memory change: the local store and the cloud row follow the in-memory
state on a last-write-wins basis.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from functools import wraps

from tostadora.domain import COLLECTIONS, empty_state
from tostadora.utils.helpers import (
    to_number, generate_sync_id, utc_now_iso, format_data_size
)

logger = logging.getLogger(__name__)

SYNC_NONE = 'none'
SYNC_CONNECTED = 'connected'
SYNC_SYNCING = 'syncing'
SYNC_ERROR = 'error'

MIN_SYNC_ID_LENGTH = 5


class ImportDataError(ValueError):
    """Raised when imported text is not a state document"""


class ConfirmationRequired(ValueError):
    """Raised when a destructive operation is attempted without confirmation"""


def check_document(data):
    """
    Reject anything that is not a state document

    Every collection present must be a list of records.

    Raises:
        ImportDataError: The document is malformed
    """
    if not isinstance(data, dict):
        raise ImportDataError('expected a JSON object')
    for name in COLLECTIONS:
        if name not in data or data[name] is None:
            continue
        records = data[name]
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ImportDataError(f"'{name}' must be a list of records")


def _locked(method):
    """Serialize access to the state across request threads"""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class StateStore:
    """Single source of truth for products, clients, sales, purchases and consumptions"""

    def __init__(self, local_storage, cloud_sync):
        self.local_storage = local_storage
        self.cloud_sync = cloud_sync
        self.is_save_locked = False
        self.last_sync = None
        self._state = None
        self._sync_status = SYNC_NONE
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self):
        """Current state document, read from the local store on first access"""
        if self._state is None:
            with self._lock:
                if self._state is None:
                    self._state = self.local_storage.load_state()
                    self._sync_status = SYNC_CONNECTED if self._state.get('syncId') else SYNC_NONE
                    logger.info("State loaded from local storage")
        return self._state

    def collection(self, name):
        return list(self.state.get(name) or [])

    @property
    def products(self):
        return self.collection('products')

    @property
    def clients(self):
        return self.collection('clients')

    @property
    def sales(self):
        return self.collection('sales')

    @property
    def purchases(self):
        return self.collection('purchases')

    @property
    def consumptions(self):
        return self.collection('consumptions')

    @property
    def sync_id(self):
        return self.state.get('syncId')

    @property
    def sync_status(self):
        if not self.sync_id:
            return SYNC_NONE
        return self._sync_status

    @property
    def data_size(self):
        return format_data_size(json.dumps(self.state, separators=(',', ':'), ensure_ascii=False))

    def find_product(self, product_id):
        return next((p for p in self.products if p.get('id') == product_id), None)

    def find_client(self, client_id):
        return next((c for c in self.clients if c.get('id') == client_id), None)

    def find_sale(self, sale_id):
        return next((s for s in self.sales if s.get('id') == sale_id), None)

    def client_history(self, client_id):
        """Sales attributed to a client, newest first"""
        history = [s for s in self.sales if s.get('clientId') == client_id]
        return sorted(history, key=lambda s: s.get('date') or '', reverse=True)

    def client_debt(self, client_id):
        return sum(to_number(s.get('balance')) for s in self.client_history(client_id))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _commit(self, new_state, push=True):
        self._state = new_state
        if self.is_save_locked:
            logger.info("Save lock active, local write skipped")
        elif not self.local_storage.save_state(new_state):
            logger.warning("Local write failed, in-memory state kept")
        if push and new_state.get('syncId'):
            self._push(new_state)
        return new_state

    def _push(self, state):
        if self.cloud_sync.push(state['syncId'], state):
            self._sync_status = SYNC_CONNECTED
            self.last_sync = utc_now_iso()
            return True
        self._sync_status = SYNC_ERROR
        logger.warning(f"Cloud push failed for sync id {state['syncId']}")
        return False

    def _with_collection(self, name, items):
        return {**self.state, name: items}

    # ------------------------------------------------------------------
    # Products and clients
    # ------------------------------------------------------------------

    @_locked
    def add_product(self, product):
        return self._commit(self._with_collection('products', self.products + [product]))

    @_locked
    def update_product(self, product):
        products = [product if p.get('id') == product.get('id') else p for p in self.products]
        return self._commit(self._with_collection('products', products))

    @_locked
    def delete_product(self, product_id):
        products = [p for p in self.products if p.get('id') != product_id]
        return self._commit(self._with_collection('products', products))

    @_locked
    def add_client(self, client):
        return self._commit(self._with_collection('clients', self.clients + [client]))

    @_locked
    def update_client(self, client):
        clients = [client if c.get('id') == client.get('id') else c for c in self.clients]
        return self._commit(self._with_collection('clients', clients))

    @_locked
    def delete_client(self, client_id):
        clients = [c for c in self.clients if c.get('id') != client_id]
        return self._commit(self._with_collection('clients', clients))

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def _adjust_for_sale(self, sale, sign):
        """Products and clients with a sale's stock and total applied (sign=+1) or reverted (-1)"""
        sold = {}
        for item in sale.get('items') or []:
            sold[item.get('id')] = sold.get(item.get('id'), 0) + to_number(item.get('quantity'))

        products = []
        for product in self.products:
            if product.get('id') in sold:
                stock = to_number(product.get('stock')) - sign * sold[product['id']]
                product = {**product, 'stock': int(stock) if stock == int(stock) else stock}
            products.append(product)

        clients = []
        for client in self.clients:
            if sale.get('clientId') and client.get('id') == sale['clientId']:
                total_spent = to_number(client.get('totalSpent')) + sign * to_number(sale.get('total'))
                client = {**client, 'totalSpent': total_spent}
            clients.append(client)

        return products, clients

    @_locked
    def add_sale(self, sale):
        """
        Record a sale

        Stock of every sold product drops by the line quantity and the client's
        running total grows by the sale total. Unknown products or clients are
        skipped.
        """
        products, clients = self._adjust_for_sale(sale, 1)
        new_state = {
            **self.state,
            'sales': self.sales + [sale],
            'products': products,
            'clients': clients,
        }
        logger.info(f"Sale {sale.get('id')} recorded for {sale.get('clientName')}: {sale.get('total')}")
        return self._commit(new_state)

    @_locked
    def delete_sale(self, sale_id, revert=False):
        """
        Remove a sale

        By default only the sale record goes away: stock and the client's
        running total keep the values applied when the sale was recorded.
        With revert=True both are restored.
        """
        sale = self.find_sale(sale_id)
        new_state = self._with_collection('sales', [s for s in self.sales if s.get('id') != sale_id])
        if sale and revert:
            products, clients = self._adjust_for_sale(sale, -1)
            new_state = {**new_state, 'products': products, 'clients': clients}
            logger.info(f"Sale {sale_id} deleted, stock and client total restored")
        return self._commit(new_state)

    @_locked
    def add_payment_to_sale(self, sale_id, payment):
        """
        Register a payment against a sale

        amountPaid grows and balance shrinks by the payment amount. Amounts are
        not clamped here; a payment larger than the balance leaves it negative.
        """
        amount = to_number(payment.get('amount'))
        sales = []
        for sale in self.sales:
            if sale.get('id') == sale_id:
                sale = {
                    **sale,
                    'amountPaid': to_number(sale.get('amountPaid')) + amount,
                    'balance': to_number(sale.get('balance')) - amount,
                    'payments': list(sale.get('payments') or []) + [payment],
                }
            sales.append(sale)
        return self._commit(self._with_collection('sales', sales))

    # ------------------------------------------------------------------
    # Ledgers
    # ------------------------------------------------------------------

    @_locked
    def add_purchase(self, purchase, restock=False):
        """
        Append a restock entry

        Stock is left alone unless restock=True, in which case the purchased
        quantity is added to the product in the same commit.
        """
        new_state = self._with_collection('purchases', self.purchases + [purchase])
        if restock:
            products = []
            for product in self.products:
                if product.get('id') == purchase.get('productId'):
                    stock = to_number(product.get('stock')) + to_number(purchase.get('quantity'))
                    product = {**product, 'stock': int(stock) if stock == int(stock) else stock}
                products.append(product)
            new_state['products'] = products
        return self._commit(new_state)

    @_locked
    def add_consumption(self, consumption):
        return self._commit(self._with_collection('consumptions', self.consumptions + [consumption]))

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------

    @_locked
    def reset_data(self, confirm=False):
        """Empty every collection and forget the locally stored document"""
        if not confirm:
            raise ConfirmationRequired('Resetting all data must be confirmed')
        self._state = empty_state()
        self.local_storage.clear_state()
        logger.warning("All data reset")
        return self._state

    def export_data(self):
        """Full state document as indented JSON text"""
        return json.dumps(self.state, indent=2, ensure_ascii=False)

    def export_filename(self, today=None):
        today = today or datetime.now(timezone.utc).date()
        return f"backup_latostadora_{today.isoformat()}.json"

    @_locked
    def import_data(self, text):
        """
        Replace the state with a previously exported document

        Raises:
            ImportDataError: The text is not JSON or not a state document;
                the current state is kept
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise ImportDataError(f"Error importing file: {e}")
        try:
            check_document(data)
        except ImportDataError as e:
            raise ImportDataError(f"Error importing file: {e}")

        logger.info("State replaced from imported document")
        return self._commit(data)

    @_locked
    def toggle_save_lock(self):
        self.is_save_locked = not self.is_save_locked
        logger.info(f"Save lock {'enabled' if self.is_save_locked else 'disabled'}")
        return self.is_save_locked

    # ------------------------------------------------------------------
    # Cloud sync
    # ------------------------------------------------------------------

    @_locked
    def push_to_cloud(self):
        """Upsert the current state under the sync id"""
        if not self.sync_id:
            return False
        self._sync_status = SYNC_SYNCING
        return self._push(self.state)

    @_locked
    def pull_from_cloud(self):
        """
        Replace the local state with the cloud copy

        Local edits made since the last push are overwritten.
        """
        sync_id = self.sync_id
        if not sync_id:
            return False
        self._sync_status = SYNC_SYNCING
        data = self.cloud_sync.pull(sync_id)
        if data is None:
            self._sync_status = SYNC_ERROR
            return False
        try:
            check_document(data)
        except ImportDataError as e:
            logger.error(f"Cloud document for {sync_id} rejected: {e}")
            self._sync_status = SYNC_ERROR
            return False

        self._commit({**data, 'syncId': data.get('syncId') or sync_id}, push=False)
        self._sync_status = SYNC_CONNECTED
        self.last_sync = utc_now_iso()
        return True

    @_locked
    def create_sync_session(self):
        """Mint a new sync id, assign it and push the current state"""
        sync_id = generate_sync_id()
        self._commit({**self.state, 'syncId': sync_id})
        logger.info(f"Sync session created: {sync_id}")
        return sync_id

    @_locked
    def link_sync_id(self, sync_id):
        """
        Attach this device to an existing sync id and download its state

        Returns:
            bool: True when the cloud state was downloaded
        """
        sync_id = str(sync_id or '').strip().lower()
        if len(sync_id) < MIN_SYNC_ID_LENGTH:
            raise ValueError(f"Sync key must be at least {MIN_SYNC_ID_LENGTH} characters")
        self._commit({**self.state, 'syncId': sync_id}, push=False)
        return self.pull_from_cloud()

    @_locked
    def unlink_sync_id(self):
        new_state = {k: v for k, v in self.state.items() if k != 'syncId'}
        return self._commit(new_state, push=False)

