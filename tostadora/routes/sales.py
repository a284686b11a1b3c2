"""
Sales Routes
Point of sale checkout and sales history
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.domain import cart_item, build_sale, PAYMENT_CASH
from tostadora.utils.helpers import format_currency
from tostadora.utils.metrics import filter_sales_history
from tostadora.utils.error_logger import log_error

bp = Blueprint('sales', __name__)


@bp.route('/', methods=['GET'])
def index():
    """Sales history, newest first"""
    sales = filter_sales_history(
        get_store().sales,
        search=request.args.get('search', '').strip(),
        date_filter=request.args.get('date', '').strip(),
    )
    return jsonify({'success': True, 'sales': sales})


@bp.route('/<sale_id>', methods=['GET'])
def view_sale(sale_id):
    sale = get_store().find_sale(sale_id)
    if not sale:
        return jsonify({'success': False, 'error': 'Sale not found'}), 404
    return jsonify({'success': True, 'sale': sale})


@bp.route('/checkout', methods=['POST'])
def checkout():
    """
    Complete a sale

    Body:
        items: [{productId, quantity, appliedPrice?}]
        clientId: Optional; required when the sale leaves a balance
        discount, amountPaid, paymentMethod, date (YYYY-MM-DD)
    """
    store = get_store()
    data = request.get_json(silent=True) or {}

    items = data.get('items') or []
    if not items:
        return jsonify({'success': False, 'error': 'No items in cart'}), 400

    client = None
    if data.get('clientId'):
        client = store.find_client(data['clientId'])
        if not client:
            return jsonify({'success': False, 'error': 'Client not found'}), 404

    try:
        cart = []
        for item_data in items:
            product = store.find_product(item_data.get('productId'))
            if not product:
                return jsonify({
                    'success': False,
                    'error': f"Product {item_data.get('productId')} not found"
                }), 404
            cart.append(cart_item(product, item_data.get('quantity', 1), item_data.get('appliedPrice')))

        sale = build_sale(
            cart,
            client=client,
            discount=data.get('discount', 0),
            amount_paid=data.get('amountPaid'),
            payment_method=data.get('paymentMethod', PAYMENT_CASH),
            sale_date=data.get('date'),
        )
        store.add_sale(sale)
        current_app.logger.info(
            f"Sale completed for {sale['clientName']}: "
            f"{format_currency(sale['total'], current_app.config.get('CURRENCY_SYMBOL', '$'))}"
        )

        return jsonify({
            'success': True,
            'sale': sale,
            'message': 'Sale completed successfully'
        }), 201

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error completing sale: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500


@bp.route('/<sale_id>', methods=['DELETE'])
def delete_sale(sale_id):
    """
    Delete a sale

    Pass ?revert=1 to give the stock back and lower the client's total.
    """
    store = get_store()
    if not store.find_sale(sale_id):
        return jsonify({'success': False, 'error': 'Sale not found'}), 404

    revert = request.args.get('revert', '').lower() in ('1', 'true')
    store.delete_sale(sale_id, revert=revert)
    current_app.logger.info(f"Sale {sale_id} deleted (revert={revert})")
    return jsonify({'success': True, 'reverted': revert, 'message': 'Sale deleted successfully'})
