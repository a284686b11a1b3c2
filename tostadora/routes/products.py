"""
Product Routes
Catalog CRUD and pricing
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.domain import (
    CATEGORIES, build_product, apply_cost_or_margin, set_selling_price
)
from tostadora.utils.metrics import filter_products
from tostadora.utils.error_logger import log_error

bp = Blueprint('products', __name__)


def _threshold():
    store = get_store()
    return store.local_storage.get_stock_threshold(current_app.config.get('LOW_STOCK_THRESHOLD', 10))


@bp.route('/', methods=['GET'])
def index():
    """List products with search, low-stock filter and sorting"""
    threshold = _threshold()
    products = filter_products(
        get_store().products,
        search=request.args.get('search', '').strip(),
        low_stock_only=request.args.get('low_stock', '').lower() in ('1', 'true'),
        threshold=threshold,
        sort_by=request.args.get('sort', 'name'),
    )
    return jsonify({'success': True, 'products': products, 'threshold': threshold})


@bp.route('/categories', methods=['GET'])
def categories():
    return jsonify({
        'success': True,
        'categories': [{'value': key, 'label': label} for key, label in CATEGORIES.items()],
    })


@bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    product = get_store().find_product(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404
    return jsonify({'success': True, 'product': product})


@bp.route('/', methods=['POST'])
def add_product():
    """Add new product"""
    try:
        product = build_product(request.get_json(silent=True) or {})
        get_store().add_product(product)
        current_app.logger.info(f"Product added: {product['name']}")
        return jsonify({'success': True, 'product': product}), 201

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error adding product: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500


@bp.route('/<product_id>', methods=['PUT'])
def edit_product(product_id):
    """Replace a product's fields"""
    store = get_store()
    existing = store.find_product(product_id)
    if not existing:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    try:
        product = build_product(request.get_json(silent=True) or {}, existing=existing)
        store.update_product(product)
        return jsonify({'success': True, 'product': product})

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error updating product {product_id}: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500


@bp.route('/<product_id>/pricing', methods=['POST'])
def update_pricing(product_id):
    """
    Reprice a product

    Either costPrice/marginPercentage (price derived from them) or a direct
    sellingPrice, which resets the margin to 0.
    """
    store = get_store()
    product = store.find_product(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    data = request.get_json(silent=True) or {}
    if 'sellingPrice' in data:
        product = set_selling_price(product, data['sellingPrice'])
    elif 'costPrice' in data or 'marginPercentage' in data:
        product = apply_cost_or_margin(
            product,
            data.get('costPrice', product.get('costPrice')),
            data.get('marginPercentage', product.get('marginPercentage')),
        )
    else:
        return jsonify({'success': False, 'error': 'Send costPrice/marginPercentage or sellingPrice'}), 400

    store.update_product(product)
    return jsonify({'success': True, 'product': product})


@bp.route('/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    """Delete a product; recorded sales keep their copy"""
    store = get_store()
    product = store.find_product(product_id)
    if not product:
        return jsonify({'success': False, 'error': 'Product not found'}), 404

    store.delete_product(product_id)
    current_app.logger.info(f"Product deleted: {product.get('name')}")
    return jsonify({'success': True, 'message': 'Product deleted successfully'})
