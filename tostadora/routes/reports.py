"""
Reports Routes
Dashboard, income statement and product analysis
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.utils.metrics import dashboard_metrics, monthly_overview
from tostadora.utils.reports import income_statement, product_analysis, fifo_lots

bp = Blueprint('reports', __name__)


def _threshold(store):
    return store.local_storage.get_stock_threshold(current_app.config.get('LOW_STOCK_THRESHOLD', 10))


@bp.route('/dashboard', methods=['GET'])
def dashboard():
    """
    Dashboard figures

    Query args:
        start_date, end_date: YYYY-MM-DD, inclusive, both optional
        varieties: Comma-separated product ids
    """
    store = get_store()
    varieties = [v for v in request.args.get('varieties', '').split(',') if v]
    data = dashboard_metrics(
        store.state,
        start_date=request.args.get('start_date', ''),
        end_date=request.args.get('end_date', ''),
        varieties=varieties,
        threshold=_threshold(store),
    )
    return jsonify({'success': True, **data})


@bp.route('/overview', methods=['GET'])
def overview():
    """Current month against the monthly goal"""
    store = get_store()
    data = monthly_overview(
        store.state,
        threshold=_threshold(store),
        goal=store.local_storage.get_monthly_goal(),
    )
    return jsonify({'success': True, **data})


@bp.route('/income-statement', methods=['GET'])
def income():
    return jsonify({'success': True, **income_statement(get_store().sales)})


@bp.route('/products/<product_id>', methods=['GET'])
def product_report(product_id):
    """Twelve-month history of a product using the cost stored on each sale"""
    store = get_store()
    if not store.find_product(product_id):
        return jsonify({'success': False, 'error': 'Product not found'}), 404
    return jsonify({'success': True, **product_analysis(store.state, product_id)})


@bp.route('/products/<product_id>/fifo', methods=['GET'])
def product_fifo(product_id):
    """Purchase lots consumed first-in, first-out"""
    store = get_store()
    if not store.find_product(product_id):
        return jsonify({'success': False, 'error': 'Product not found'}), 404
    return jsonify({'success': True, **fifo_lots(store.state, product_id)})
