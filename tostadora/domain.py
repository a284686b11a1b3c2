"""
Domain Records
Builders for the records kept in the application state document.

Records are plain JSON-compatible dicts using the document's camelCase keys,
so the state can be serialized, exported and synced without translation.
Sales, purchases and consumptions copy product names, prices and costs at the
time they are recorded; those snapshots are historical facts and are never
re-pointed at the live product.
"""

from datetime import datetime, date, timezone

from tostadora.utils.helpers import (
    to_number, round_half_up, new_id, utc_now_iso, to_iso
)

CATEGORIES = {
    'Grano': 'Café en Grano',
    'Molido': 'Café Molido',
    'Accesorios': 'Accesorios',
    'Comida': 'Pastelería/Comida',
    'Otros': 'Otros',
}
DEFAULT_CATEGORY = 'Otros'

PAYMENT_CASH = 'Efectivo'
PAYMENT_TRANSFER = 'Transferencia'
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_TRANSFER)

WALK_IN_CLIENT_NAME = 'Consumidor Final'
DEFAULT_IMAGE_URL = 'https://via.placeholder.com/200?text=No+Image'
DEFAULT_CONSUMPTION_REASON = 'Consumo Propio / Interno'

COLLECTIONS = ('products', 'clients', 'sales', 'purchases', 'consumptions')


def empty_state():
    """A document with the five collections empty"""
    return {name: [] for name in COLLECTIONS}


def calculate_selling_price(cost_price, margin_percentage):
    """
    Selling price derived from cost and margin

    Args:
        cost_price: Unit cost
        margin_percentage: Markup over cost, in percent

    Returns:
        int: round(cost * (1 + margin / 100))
    """
    return round_half_up(to_number(cost_price) * (1 + to_number(margin_percentage) / 100))


def apply_cost_or_margin(product, cost_price, margin_percentage):
    """Return a copy of product with new cost/margin and the derived price"""
    return {
        **product,
        'costPrice': to_number(cost_price),
        'marginPercentage': to_number(margin_percentage),
        'sellingPrice': calculate_selling_price(cost_price, margin_percentage),
    }


def set_selling_price(product, selling_price):
    """Return a copy of product priced directly; the margin no longer applies"""
    return {
        **product,
        'sellingPrice': to_number(selling_price),
        'marginPercentage': 0,
    }


def _validate_category(category):
    category = category or DEFAULT_CATEGORY
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category '{category}'. Use one of: {', '.join(CATEGORIES)}")
    return category


def _validate_payment_method(method):
    method = method or PAYMENT_CASH
    if method not in PAYMENT_METHODS:
        raise ValueError(f"Unknown payment method '{method}'. Use one of: {', '.join(PAYMENT_METHODS)}")
    return method


def day_to_iso(day):
    """
    Convert a calendar day to the stored date format (midnight UTC)

    Args:
        day: date, 'YYYY-MM-DD' text, or None for today
    """
    if day is None or day == '':
        day = date.today()
    if isinstance(day, str):
        try:
            day = date.fromisoformat(day[:10])
        except ValueError:
            raise ValueError(f"Invalid date '{day}'. Use YYYY-MM-DD")
    return to_iso(datetime(day.year, day.month, day.day))


def build_product(data, existing=None):
    """
    Build a product record from submitted data

    The selling price is derived from cost and margin. When a selling price is
    submitted that differs from the derived one, it is taken as a direct price
    and the margin is reset to 0.

    Args:
        data: Submitted fields (camelCase keys)
        existing: Current record when editing; keeps its id and cost history

    Returns:
        dict: Product record
    """
    name = (data.get('name') or '').strip()
    if not name:
        raise ValueError('Product name is required')

    product = {
        'id': existing['id'] if existing else (data.get('id') or new_id()),
        'name': name,
        'description': data.get('description') or '',
        'category': _validate_category(data.get('category')),
        'stock': int(to_number(data.get('stock'))),
        'imageUrl': data.get('imageUrl') or DEFAULT_IMAGE_URL,
        'history': list(existing.get('history') or []) if existing else [],
    }
    product = apply_cost_or_margin(product, data.get('costPrice'), data.get('marginPercentage'))

    submitted_price = data.get('sellingPrice')
    if submitted_price not in (None, '') and to_number(submitted_price) != product['sellingPrice']:
        product = set_selling_price(product, submitted_price)
    return product


def build_client(data, existing=None):
    """
    Build a client record from submitted data

    Editing keeps the running total and the creation date.
    """
    name = (data.get('name') or '').strip()
    if not name:
        raise ValueError('Client name is required')

    client = {
        'id': existing['id'] if existing else (data.get('id') or new_id()),
        'name': name,
        'email': data.get('email') or None,
        'phone': data.get('phone') or None,
        'notes': data.get('notes') or '',
        'totalSpent': to_number(existing.get('totalSpent')) if existing else 0,
        'createdAt': existing.get('createdAt') if existing else utc_now_iso(),
    }
    return client


def cart_item(product, quantity, applied_price=None):
    """
    Snapshot a product as a sale line

    Args:
        product: Current product record
        quantity: Units sold, a whole number
        applied_price: Price actually charged (defaults to the selling price)
    """
    quantity = to_number(quantity)
    if quantity != int(quantity):
        raise ValueError(f"Quantity for '{product.get('name')}' must be a whole number")
    quantity = int(quantity)
    if quantity < 1:
        raise ValueError(f"Quantity for '{product.get('name')}' must be at least 1")
    if applied_price in (None, ''):
        applied_price = product.get('sellingPrice')
    return {
        **product,
        'quantity': quantity,
        'appliedPrice': to_number(applied_price),
    }


def build_payment(amount, method=PAYMENT_CASH, paid_at=None):
    """Build a payment record"""
    return {
        'id': new_id(),
        'date': paid_at or utc_now_iso(),
        'amount': to_number(amount),
        'method': _validate_payment_method(method),
    }


def build_sale(cart, client=None, discount=0, amount_paid=None,
               payment_method=PAYMENT_CASH, sale_date=None, now=None):
    """
    Check out a cart into a sale record

    Args:
        cart: List of cart items (see cart_item)
        client: Client record, or None for a walk-in customer
        discount: Discount amount taken off the subtotal
        amount_paid: Amount received now (defaults to the full total)
        payment_method: Efectivo or Transferencia
        sale_date: Calendar day of the sale (defaults to today)
        now: Current time, used for the time of day

    Returns:
        dict: Sale record

    Raises:
        ValueError: Empty cart, or a debt without a client
    """
    if not cart:
        raise ValueError('No items in cart')
    payment_method = _validate_payment_method(payment_method)

    subtotal = sum(to_number(item.get('appliedPrice')) * to_number(item.get('quantity'))
                   for item in cart)
    discount = to_number(discount)
    total = subtotal - discount
    amount_paid = total if amount_paid in (None, '') else to_number(amount_paid)
    balance = total - amount_paid

    if balance > 0 and not client:
        raise ValueError('A client must be selected to register a debt')

    now = now or datetime.now(timezone.utc)
    day = date.fromisoformat(day_to_iso(sale_date)[:10])
    checkout_at = to_iso(datetime(day.year, day.month, day.day,
                                  now.hour, now.minute, now.second, now.microsecond))

    payments = []
    if amount_paid > 0:
        payments.append(build_payment(amount_paid, payment_method, checkout_at))

    return {
        'id': new_id(),
        'clientId': client['id'] if client else None,
        'clientName': client['name'] if client else WALK_IN_CLIENT_NAME,
        'date': checkout_at,
        'items': list(cart),
        'subtotal': subtotal,
        'discountAmount': discount,
        'total': total,
        'paymentMethod': payment_method,
        'amountPaid': amount_paid,
        'balance': balance,
        'payments': payments,
    }


def build_purchase(product, quantity, unit_cost, purchase_date=None):
    """Restock ledger entry for a product"""
    quantity = to_number(quantity)
    unit_cost = to_number(unit_cost)
    if quantity <= 0:
        raise ValueError('Purchase quantity must be greater than 0')
    return {
        'id': new_id(),
        'date': day_to_iso(purchase_date),
        'productId': product['id'],
        'productName': product.get('name', ''),
        'quantity': quantity,
        'unitCost': unit_cost,
        'totalCost': quantity * unit_cost,
    }


def build_consumption(product, quantity, consumption_date=None, reason=None):
    """Internal-use ledger entry for a product"""
    quantity = to_number(quantity)
    if quantity <= 0:
        raise ValueError('Consumption quantity must be greater than 0')
    return {
        'id': new_id(),
        'productId': product['id'],
        'productName': product.get('name', ''),
        'quantity': quantity,
        'date': day_to_iso(consumption_date),
        'reason': reason or DEFAULT_CONSUMPTION_REASON,
    }
