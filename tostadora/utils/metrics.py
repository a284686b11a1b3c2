"""
Dashboard Metrics
Aggregates recomputed from the state document on every read
"""

from datetime import date

from tostadora.utils.helpers import (
    to_number, date_prefix, parse_date, trailing_months, month_label
)


def _items(sale):
    return sale.get('items') or []


def _line_price(item):
    """Price charged on a line, falling back to the list price"""
    return to_number(item.get('appliedPrice') or item.get('sellingPrice'))


def filter_sales(sales, start_date='', end_date='', varieties=None):
    """
    Sales within an inclusive calendar-day range

    Args:
        sales: Sale records
        start_date: YYYY-MM-DD lower bound ('' for open)
        end_date: YYYY-MM-DD upper bound ('' for open)
        varieties: Product ids; when given, only sales with one of them are kept

    Returns:
        list: Matching sales
    """
    varieties = set(varieties or [])
    result = []
    for sale in sales:
        day = date_prefix(sale.get('date'))
        if start_date and day < start_date:
            continue
        if end_date and day > end_date:
            continue
        if varieties and not any(item.get('id') in varieties for item in _items(sale)):
            continue
        result.append(sale)
    return result


def sales_totals(sales, products, varieties=None):
    """
    Revenue, cost and units over sale lines

    Cost uses the current product cost; lines whose product no longer exists
    cost 0.

    Returns:
        dict: revenue, cost, profit, units
    """
    varieties = set(varieties or [])
    cost_by_product = {p.get('id'): to_number(p.get('costPrice')) for p in products}
    revenue = cost = units = 0.0

    for sale in sales:
        for item in _items(sale):
            if varieties and item.get('id') not in varieties:
                continue
            quantity = to_number(item.get('quantity'))
            revenue += to_number(item.get('appliedPrice')) * quantity
            cost += cost_by_product.get(item.get('id'), 0.0) * quantity
            units += quantity

    return {
        'revenue': revenue,
        'cost': cost,
        'profit': revenue - cost,
        'units': units,
    }


def outstanding_balance(sales):
    """Sum of sale balances (not clamped at zero)"""
    return sum(to_number(s.get('balance')) for s in sales)


def low_stock_products(products, threshold):
    """Products at or below the stock threshold"""
    return [p for p in products if to_number(p.get('stock')) <= threshold]


def top_clients(sales, limit=None):
    """
    Clients ranked by total billed

    Sales are grouped by client name, so two clients sharing a name are merged.

    Returns:
        list: dicts with name, total, count; highest total first
    """
    ranking = {}
    for sale in sales:
        name = sale.get('clientName') or ''
        entry = ranking.setdefault(name, {'name': name, 'total': 0.0, 'count': 0})
        entry['total'] += to_number(sale.get('total'))
        entry['count'] += 1

    result = sorted(ranking.values(), key=lambda c: c['total'], reverse=True)
    return result[:limit] if limit else result


def client_trophies(sales):
    """Podium of the three best clients"""
    podium = top_clients(sales, limit=3)
    return [{**entry, 'place': place} for place, entry in enumerate(podium, start=1)]


def top_products(sales, varieties=None):
    """
    Products ranked by units sold

    Returns:
        list: dicts with id, name, qty, total; most units first
    """
    varieties = set(varieties or [])
    ranking = {}
    for sale in sales:
        for item in _items(sale):
            product_id = item.get('id')
            if varieties and product_id not in varieties:
                continue
            quantity = to_number(item.get('quantity'))
            entry = ranking.setdefault(product_id, {
                'id': product_id, 'name': item.get('name'), 'qty': 0.0, 'total': 0.0
            })
            entry['qty'] += quantity
            entry['total'] += _line_price(item) * quantity

    return sorted(ranking.values(), key=lambda p: p['qty'], reverse=True)


def top_product(sales):
    """Best-selling product by units, or None when nothing was sold"""
    ranking = top_products(sales)
    if ranking and ranking[0]['qty'] > 0:
        return ranking[0]
    return None


def outstanding_by_client(sales):
    """
    Debts grouped per client

    Only sales with a positive balance count. Sales are keyed by client id, or
    by client name when the sale has no client id.

    Returns:
        list: dicts with name, balance, count; largest balance first
    """
    debts = {}
    for sale in sales:
        balance = to_number(sale.get('balance'))
        if balance <= 0:
            continue
        key = sale.get('clientId') or sale.get('clientName')
        entry = debts.setdefault(key, {'name': sale.get('clientName'), 'balance': 0.0, 'count': 0})
        entry['balance'] += balance
        entry['count'] += 1
    return sorted(debts.values(), key=lambda d: d['balance'], reverse=True)


def sales_in_month(sales, year, month):
    """Sales dated in a calendar month, skipping unparseable dates"""
    result = []
    for sale in sales:
        parsed = parse_date(sale.get('date'))
        if parsed and parsed.year == year and parsed.month == month:
            result.append(sale)
    return result


def sales_trend(sales, months=6, today=None):
    """
    Billed totals for the trailing months

    Returns:
        list: dicts with name (Spanish short month) and Ventas, oldest first
    """
    return [
        {
            'name': month_label(year, month, with_year=False),
            'month': f"{year:04d}-{month:02d}",
            'Ventas': sum(to_number(s.get('total')) for s in sales_in_month(sales, year, month)),
        }
        for year, month in trailing_months(months, today)
    ]


def goal_progress(revenue, goal):
    """Percentage of the monthly goal reached (0 without a goal)"""
    goal = to_number(goal)
    if goal <= 0:
        return 0.0
    return revenue / goal * 100


def inventory_valuation(products):
    """
    Stock valued at cost and at selling price

    Returns:
        dict: totalCost, totalMarket, totalStock, potentialProfit
    """
    total_cost = total_market = total_stock = 0.0
    for product in products:
        stock = to_number(product.get('stock'))
        total_cost += stock * to_number(product.get('costPrice'))
        total_market += stock * to_number(product.get('sellingPrice'))
        total_stock += stock
    return {
        'totalCost': total_cost,
        'totalMarket': total_market,
        'totalStock': total_stock,
        'potentialProfit': total_market - total_cost,
    }


def filter_products(products, search='', low_stock_only=False, threshold=10, sort_by='name'):
    """
    Inventory listing

    Args:
        search: Matches product name or category, case-insensitive
        low_stock_only: Keep only products at or below the threshold
        sort_by: name, stock_asc or stock_desc
    """
    term = (search or '').lower()
    result = [
        p for p in products
        if term in (p.get('name') or '').lower() or term in (p.get('category') or '').lower()
    ]
    if low_stock_only:
        result = low_stock_products(result, threshold)

    if sort_by == 'stock_asc':
        result.sort(key=lambda p: to_number(p.get('stock')))
    elif sort_by == 'stock_desc':
        result.sort(key=lambda p: to_number(p.get('stock')), reverse=True)
    else:
        result.sort(key=lambda p: (p.get('name') or '').lower())
    return result


def filter_sales_history(sales, search='', date_filter=''):
    """
    Sales history listing, newest first

    Args:
        search: Matches client name or any item name, case-insensitive
        date_filter: Date prefix such as 2024-05-01
    """
    term = (search or '').lower()
    result = []
    for sale in sales:
        matches_search = term in (sale.get('clientName') or '').lower() or \
            any(term in (item.get('name') or '').lower() for item in _items(sale))
        matches_date = str(sale.get('date') or '').startswith(date_filter) if date_filter else True
        if matches_search and matches_date:
            result.append(sale)
    return sorted(result, key=lambda s: s.get('date') or '', reverse=True)


def filter_clients(clients, search=''):
    term = (search or '').lower()
    return [c for c in clients if term in (c.get('name') or '').lower()]


def dashboard_metrics(state, start_date='', end_date='', varieties=None, threshold=10):
    """
    Headline figures for the dashboard filters

    Returns:
        dict: metrics, lowStockProducts, topClients, trophies, topProducts
    """
    sales = state.get('sales') or []
    products = state.get('products') or []

    filtered = filter_sales(sales, start_date, end_date, varieties)
    totals = sales_totals(filtered, products, varieties)
    low_stock = low_stock_products(products, threshold)

    return {
        'metrics': {
            'totalRevenue': totals['revenue'],
            'totalCost': totals['cost'],
            'totalProfit': totals['profit'],
            'totalUnits': totals['units'],
            'totalOutstanding': outstanding_balance(filtered),
            'lowStockCount': len(low_stock),
            'salesCount': len(filtered),
        },
        'lowStockProducts': low_stock,
        'topClients': top_clients(filtered),
        'trophies': client_trophies(filtered),
        'topProducts': top_products(filtered, varieties),
        'chartData': sales_trend(sales),
    }


def monthly_overview(state, threshold=10, goal=0, today=None):
    """
    Current-month figures, all-time receivables and the best sellers
    """
    today = today or date.today()
    sales = state.get('sales') or []
    products = state.get('products') or []

    month_sales = sales_in_month(sales, today.year, today.month)
    revenue = sum(to_number(s.get('total')) for s in month_sales)
    units = sum(to_number(item.get('quantity')) for s in month_sales for item in _items(s))
    low_stock = low_stock_products(products, threshold)

    return {
        'metrics': {
            'totalRevenue': revenue,
            'totalItemsSold': units,
            'lowStockCount': len(low_stock),
            'totalOutstanding': outstanding_balance(sales),
            'monthlyGoal': to_number(goal),
            'goalProgress': goal_progress(revenue, goal),
        },
        'lowStockProducts': low_stock,
        'currentMonthSales': sorted(month_sales, key=lambda s: s.get('date') or '', reverse=True),
        'monthlySoldItems': top_products(month_sales),
        'topProductStats': {
            'month': top_product(month_sales),
            'allTime': top_product(sales),
        },
        'outstandingClients': outstanding_by_client(sales),
        'salesData': sales_trend(sales, today=today),
    }
