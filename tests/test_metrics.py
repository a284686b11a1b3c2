"""
Unit Tests for Dashboard Metrics
"""

import pytest
from datetime import date

from tostadora.utils.metrics import (
    filter_sales, sales_totals, outstanding_balance, low_stock_products,
    top_clients, client_trophies, top_products, top_product,
    outstanding_by_client, sales_trend, goal_progress, inventory_valuation,
    filter_products, filter_sales_history, filter_clients,
    dashboard_metrics, monthly_overview
)


def _line(product_id, name, quantity, applied_price, cost_price=0, selling_price=None):
    return {
        'id': product_id, 'name': name, 'quantity': quantity,
        'appliedPrice': applied_price, 'costPrice': cost_price,
        'sellingPrice': selling_price if selling_price is not None else applied_price,
    }


@pytest.fixture
def products():
    return [
        {'id': 'p1', 'name': 'Grano Colombia', 'category': 'Grano', 'costPrice': 10, 'sellingPrice': 15, 'stock': 30},
        {'id': 'p2', 'name': 'Molido Brasil', 'category': 'Molido', 'costPrice': 8, 'sellingPrice': 10, 'stock': 4},
        {'id': 'p3', 'name': 'Prensa francesa', 'category': 'Accesorios', 'costPrice': 20, 'sellingPrice': 35, 'stock': 10},
    ]


@pytest.fixture
def sales():
    return [
        {'id': 's1', 'clientId': 'c1', 'clientName': 'Ana', 'date': '2024-05-01T10:00:00.000Z',
         'items': [_line('p1', 'Grano Colombia', 2, 15)], 'total': 30, 'balance': 0},
        {'id': 's2', 'clientId': 'c2', 'clientName': 'Bruno', 'date': '2024-05-15T18:30:00.000Z',
         'items': [_line('p2', 'Molido Brasil', 3, 10), _line('p1', 'Grano Colombia', 1, 14)],
         'total': 44, 'balance': 20},
        {'id': 's3', 'clientId': None, 'clientName': 'Consumidor Final', 'date': '2024-06-02T09:00:00.000Z',
         'items': [_line('p3', 'Prensa francesa', 1, 35)], 'total': 35, 'balance': 0},
        {'id': 's4', 'clientId': 'c3', 'clientName': 'Ana', 'date': '2024-06-20T12:00:00.000Z',
         'items': [_line('p2', 'Molido Brasil', 1, 10)], 'total': 10, 'balance': 10},
    ]


class TestFiltering:

    def test_inclusive_day_range(self, sales):
        result = filter_sales(sales, '2024-05-15', '2024-06-02')
        assert [s['id'] for s in result] == ['s2', 's3']

    def test_open_bounds(self, sales):
        assert len(filter_sales(sales)) == 4
        assert [s['id'] for s in filter_sales(sales, start_date='2024-06-01')] == ['s3', 's4']

    def test_variety_filter_keeps_sales_with_product(self, sales):
        assert [s['id'] for s in filter_sales(sales, varieties=['p1'])] == ['s1', 's2']


class TestTotals:

    def test_revenue_is_sum_of_applied_price(self, sales, products):
        in_range = filter_sales(sales, '2024-05-01', '2024-05-31')
        totals = sales_totals(in_range, products)
        assert totals['revenue'] == 2 * 15 + 3 * 10 + 1 * 14
        assert totals['cost'] == 2 * 10 + 3 * 8 + 1 * 10
        assert totals['profit'] == totals['revenue'] - totals['cost']
        assert totals['units'] == 6

    def test_variety_filter_counts_only_its_lines(self, sales, products):
        totals = sales_totals(sales, products, varieties=['p1'])
        assert totals['revenue'] == 44
        assert totals['units'] == 3

    def test_missing_product_costs_zero(self, sales):
        assert sales_totals(sales, [])['cost'] == 0

    def test_outstanding_balance(self, sales):
        assert outstanding_balance(sales) == 30

    def test_low_stock_inclusive(self, products):
        assert [p['id'] for p in low_stock_products(products, 10)] == ['p2', 'p3']


class TestRankings:

    def test_top_clients_grouped_by_name(self, sales):
        ranking = top_clients(sales)
        assert ranking[0] == {'name': 'Bruno', 'total': 44, 'count': 1}
        ana = next(c for c in ranking if c['name'] == 'Ana')
        assert ana['total'] == 40
        assert ana['count'] == 2

    def test_trophies_are_top_three(self, sales):
        trophies = client_trophies(sales)
        assert [t['place'] for t in trophies] == [1, 2, 3]
        assert trophies[0]['name'] == 'Bruno'

    def test_top_products_by_units(self, sales):
        ranking = top_products(sales)
        assert ranking[0]['id'] == 'p2'
        assert ranking[0]['qty'] == 4
        assert ranking[0]['total'] == 40

    def test_top_product_falls_back_to_selling_price(self):
        sales = [{'items': [{'id': 'p1', 'name': 'X', 'quantity': 2, 'appliedPrice': 0, 'sellingPrice': 9}]}]
        assert top_products(sales)[0]['total'] == 18

    def test_top_product_none_without_sales(self):
        assert top_product([]) is None

    def test_outstanding_by_client(self, sales):
        debts = outstanding_by_client(sales)
        assert debts == [
            {'name': 'Bruno', 'balance': 20, 'count': 1},
            {'name': 'Ana', 'balance': 10, 'count': 1},
        ]

    def test_outstanding_keyed_by_name_without_client_id(self):
        sales = [
            {'clientId': None, 'clientName': 'Mostrador', 'balance': 5},
            {'clientId': None, 'clientName': 'Mostrador', 'balance': 7},
        ]
        assert outstanding_by_client(sales) == [{'name': 'Mostrador', 'balance': 12, 'count': 2}]


class TestTrendAndGoal:

    def test_trend_covers_six_months(self, sales):
        trend = sales_trend(sales, today=date(2024, 6, 30))
        assert [row['name'] for row in trend] == ['ene', 'feb', 'mar', 'abr', 'may', 'jun']
        assert trend[-2]['Ventas'] == 74
        assert trend[-1]['Ventas'] == 45

    def test_goal_progress(self):
        assert goal_progress(250, 1000) == 25
        assert goal_progress(250, 0) == 0

    def test_inventory_valuation(self, products):
        valuation = inventory_valuation(products)
        assert valuation['totalCost'] == 30 * 10 + 4 * 8 + 10 * 20
        assert valuation['totalMarket'] == 30 * 15 + 4 * 10 + 10 * 35
        assert valuation['totalStock'] == 44
        assert valuation['potentialProfit'] == valuation['totalMarket'] - valuation['totalCost']


class TestListings:

    def test_filter_products_by_category(self, products):
        assert [p['id'] for p in filter_products(products, search='molido')] == ['p2']

    def test_filter_products_low_stock_sorted(self, products):
        result = filter_products(products, low_stock_only=True, threshold=10, sort_by='stock_asc')
        assert [p['id'] for p in result] == ['p2', 'p3']

    def test_filter_products_stock_desc(self, products):
        assert [p['id'] for p in filter_products(products, sort_by='stock_desc')] == ['p1', 'p3', 'p2']

    def test_sales_history_newest_first(self, sales):
        assert [s['id'] for s in filter_sales_history(sales)] == ['s4', 's3', 's2', 's1']

    def test_sales_history_search_item_name(self, sales):
        assert [s['id'] for s in filter_sales_history(sales, search='prensa')] == ['s3']

    def test_sales_history_date_prefix(self, sales):
        assert [s['id'] for s in filter_sales_history(sales, date_filter='2024-05')] == ['s2', 's1']

    def test_filter_clients(self):
        clients = [{'name': 'Ana'}, {'name': 'Bruno'}]
        assert filter_clients(clients, 'BRU') == [{'name': 'Bruno'}]


class TestViews:

    def test_dashboard_metrics(self, sales, products):
        state = {'sales': sales, 'products': products}
        data = dashboard_metrics(state, '2024-06-01', '2024-06-30', threshold=5)
        assert data['metrics']['totalRevenue'] == 45
        assert data['metrics']['salesCount'] == 2
        assert data['metrics']['totalOutstanding'] == 10
        assert data['metrics']['lowStockCount'] == 1
        assert data['topClients'][0] == {'name': 'Consumidor Final', 'total': 35, 'count': 1}

    def test_monthly_overview(self, sales, products):
        state = {'sales': sales, 'products': products}
        data = monthly_overview(state, threshold=10, goal=90, today=date(2024, 6, 25))
        assert data['metrics']['totalRevenue'] == 45
        assert data['metrics']['totalItemsSold'] == 2
        assert data['metrics']['goalProgress'] == 50
        assert data['metrics']['totalOutstanding'] == 30
        assert [s['id'] for s in data['currentMonthSales']] == ['s4', 's3']
        assert data['topProductStats']['allTime']['id'] == 'p2'
        assert len(data['salesData']) == 6

    def test_empty_state(self):
        data = monthly_overview({}, today=date(2024, 1, 1))
        assert data['metrics']['totalRevenue'] == 0
        assert data['topProductStats'] == {'month': None, 'allTime': None}
