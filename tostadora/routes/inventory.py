"""
Inventory Routes
Restock (purchase) and internal consumption ledgers, stock valuation
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.domain import build_purchase, build_consumption
from tostadora.utils.helpers import to_number
from tostadora.utils.metrics import inventory_valuation
from tostadora.utils.reports import product_purchases
from tostadora.utils.error_logger import log_error

bp = Blueprint('inventory', __name__)


@bp.route('/valuation', methods=['GET'])
def valuation():
    """Stock valued at cost and at selling price"""
    return jsonify({'success': True, 'valuation': inventory_valuation(get_store().products)})


@bp.route('/purchases', methods=['GET'])
def list_purchases():
    store = get_store()
    product_id = request.args.get('product_id')
    if product_id:
        purchases = product_purchases(store.purchases, product_id)
    else:
        purchases = sorted(store.purchases, key=lambda p: p.get('date') or '', reverse=True)
    return jsonify({'success': True, 'purchases': purchases})


@bp.route('/purchases', methods=['POST'])
def add_purchase():
    """
    Register a restock

    The purchased quantity is added to the product's stock.
    """
    store = get_store()
    data = request.get_json(silent=True) or {}

    product = store.find_product(data.get('productId'))
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    try:
        purchase = build_purchase(
            product,
            data.get('quantity'),
            data.get('unitCost', product.get('costPrice')),
            data.get('date'),
        )
        store.add_purchase(purchase, restock=True)
        current_app.logger.info(f"Purchase registered: {purchase['quantity']} x {product.get('name')}")
        return jsonify({'success': True, 'purchase': purchase}), 201

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error registering purchase: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500


@bp.route('/consumptions', methods=['GET'])
def list_consumptions():
    consumptions = get_store().consumptions
    product_id = request.args.get('product_id')
    if product_id:
        consumptions = [c for c in consumptions if c.get('productId') == product_id]
    consumptions.sort(key=lambda c: c.get('date') or '', reverse=True)
    return jsonify({'success': True, 'consumptions': consumptions})


@bp.route('/consumptions', methods=['POST'])
def add_consumption():
    """
    Register internal use of a product

    Only the ledger entry is written; the product's stock is not decremented.
    """
    store = get_store()
    data = request.get_json(silent=True) or {}

    product = store.find_product(data.get('productId'))
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    if to_number(data.get('quantity')) > to_number(product.get('stock')):
        return jsonify({
            'success': False,
            'error': f"Insufficient stock for {product.get('name')}. Available: {product.get('stock')}"
        }), 400

    try:
        consumption = build_consumption(product, data.get('quantity'), data.get('date'), data.get('reason'))
        store.add_consumption(consumption)
        return jsonify({'success': True, 'consumption': consumption}), 201

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error registering consumption: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500
