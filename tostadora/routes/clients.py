"""
Client Routes
Client accounts, purchase history and debt collection
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.domain import build_client, build_payment, PAYMENT_CASH
from tostadora.utils.helpers import to_number
from tostadora.utils.metrics import filter_clients
from tostadora.utils.error_logger import log_error

bp = Blueprint('clients', __name__)


@bp.route('/', methods=['GET'])
def index():
    """List clients with their outstanding debt"""
    store = get_store()
    clients = filter_clients(store.clients, request.args.get('search', '').strip())
    return jsonify({
        'success': True,
        'clients': [{**c, 'debt': store.client_debt(c.get('id'))} for c in clients],
    })


@bp.route('/<client_id>', methods=['GET'])
def view_client(client_id):
    """Client detail with purchase history"""
    store = get_store()
    client = store.find_client(client_id)
    if not client:
        return jsonify({'success': False, 'error': 'Client not found'}), 404

    return jsonify({
        'success': True,
        'client': client,
        'history': store.client_history(client_id),
        'debt': store.client_debt(client_id),
    })


@bp.route('/', methods=['POST'])
def add_client():
    """Add new client"""
    try:
        client = build_client(request.get_json(silent=True) or {})
        get_store().add_client(client)
        current_app.logger.info(f"Client added: {client['name']}")
        return jsonify({'success': True, 'client': client}), 201

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception as e:
        current_app.logger.error(f"Error adding client: {e}")
        log_error(e)
        return jsonify({'success': False, 'error': str(e)}), 500


@bp.route('/<client_id>', methods=['PUT'])
def edit_client(client_id):
    store = get_store()
    existing = store.find_client(client_id)
    if not existing:
        return jsonify({'success': False, 'error': 'Client not found'}), 404

    try:
        client = build_client(request.get_json(silent=True) or {}, existing=existing)
        store.update_client(client)
        return jsonify({'success': True, 'client': client})

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400


@bp.route('/<client_id>', methods=['DELETE'])
def delete_client(client_id):
    """Delete a client; their sales are kept"""
    store = get_store()
    if not store.find_client(client_id):
        return jsonify({'success': False, 'error': 'Client not found'}), 404

    store.delete_client(client_id)
    return jsonify({'success': True, 'message': 'Client deleted successfully'})


@bp.route('/<client_id>/payments', methods=['POST'])
def register_payment(client_id):
    """
    Collect a payment against one of the client's sales

    The amount is capped at the sale's balance.
    """
    store = get_store()
    data = request.get_json(silent=True) or {}

    sale = store.find_sale(data.get('saleId'))
    if not sale or sale.get('clientId') != client_id:
        return jsonify({'success': False, 'error': 'Sale not found for this client'}), 404

    balance = to_number(sale.get('balance'))
    amount = min(to_number(data.get('amount')), balance)
    if amount <= 0:
        return jsonify({'success': False, 'error': 'Payment amount must be greater than 0'}), 400

    try:
        payment = build_payment(amount, data.get('method', PAYMENT_CASH))
        store.add_payment_to_sale(sale['id'], payment)
        current_app.logger.info(f"Payment of {amount} registered on sale {sale['id']}")
        return jsonify({
            'success': True,
            'payment': payment,
            'sale': store.find_sale(sale['id']),
            'debt': store.client_debt(client_id),
        })

    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
