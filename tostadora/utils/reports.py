"""
Financial Report Utilities
Income statement and per-product history built from the state document
"""

from datetime import date

from tostadora.utils.helpers import (
    to_number, month_key, parse_date, trailing_months, month_label
)


def _empty_month():
    return {
        'billed': 0.0,
        'discounts': 0.0,
        'cogs': 0.0,
        'profit': 0.0,
        'itemsSold': 0.0,
        'ticketCount': 0,
        'pendingMonth': 0.0,
    }


def _billed(sale):
    """Gross amount of a sale: its subtotal, or total plus discount for older records"""
    return to_number(sale.get('subtotal')) or \
        to_number(sale.get('total')) + to_number(sale.get('discountAmount'))


def _margin(profit, net):
    return profit / net * 100 if net else 0.0


def income_statement(sales):
    """
    Monthly income statement

    Methodology: billed - discounts - cost of goods sold = profit. Cost of goods
    uses the unit cost stored on each sale line. Sales with unparseable dates
    are left out.

    Args:
        sales: Sale records

    Returns:
        dict: monthlyData (rows sorted by month) and totals
    """
    months = {}
    totals = {'billed': 0.0, 'discounts': 0.0, 'pending': 0.0, 'cogs': 0.0}

    for sale in sales:
        key = month_key(sale.get('date'))
        if key is None:
            continue
        row = months.setdefault(key, _empty_month())

        billed = _billed(sale)
        discount = to_number(sale.get('discountAmount'))
        balance = to_number(sale.get('balance'))

        row['billed'] += billed
        row['discounts'] += discount
        row['pendingMonth'] += balance
        row['ticketCount'] += 1
        totals['billed'] += billed
        totals['discounts'] += discount
        totals['pending'] += balance

        for item in sale.get('items') or []:
            quantity = to_number(item.get('quantity'))
            cost_line = to_number(item.get('costPrice')) * quantity
            row['itemsSold'] += quantity
            row['cogs'] += cost_line
            totals['cogs'] += cost_line

    monthly_data = []
    for key in sorted(months):
        row = months[key]
        net = row['billed'] - row['discounts']
        row['profit'] = net - row['cogs']
        monthly_data.append({
            'month': key,
            **row,
            'collectedMonth': net - row['pendingMonth'],
            'margin': _margin(row['profit'], net),
        })

    net_total = totals['billed'] - totals['discounts']
    total_profit = net_total - totals['cogs']
    return {
        'monthlyData': monthly_data,
        'totals': {
            'totalBilled': totals['billed'],
            'totalDiscounts': totals['discounts'],
            'totalPending': totals['pending'],
            'totalCogs': totals['cogs'],
            'totalProfit': total_profit,
            'totalCollected': net_total - totals['pending'],
            'margin': _margin(total_profit, net_total),
        },
    }


def product_history(sales, product_id, months=12, today=None):
    """
    Trailing monthly history of one product

    Revenue uses the price charged on each line; cost uses the unit cost
    stored on the line when the sale was made.

    Returns:
        list: dicts with month label, key, units, revenue, cogs, profit; oldest first
    """
    scaffold = {}
    for year, month in trailing_months(months, today):
        scaffold[(year, month)] = {
            'month': month_label(year, month),
            'key': f"{year:04d}-{month:02d}",
            'units': 0.0,
            'revenue': 0.0,
            'cogs': 0.0,
            'profit': 0.0,
        }

    for sale in sales:
        parsed = parse_date(sale.get('date'))
        if parsed is None or (parsed.year, parsed.month) not in scaffold:
            continue
        row = scaffold[(parsed.year, parsed.month)]
        for item in sale.get('items') or []:
            if item.get('id') != product_id:
                continue
            quantity = to_number(item.get('quantity'))
            revenue = quantity * to_number(item.get('appliedPrice') or item.get('sellingPrice'))
            cogs = quantity * to_number(item.get('costPrice'))
            row['units'] += quantity
            row['revenue'] += revenue
            row['cogs'] += cogs
            row['profit'] += revenue - cogs

    return list(scaffold.values())


def product_purchases(purchases, product_id):
    """Restock entries of a product, newest first"""
    entries = [p for p in purchases if p.get('productId') == product_id]
    return sorted(entries, key=lambda p: p.get('date') or '', reverse=True)


def product_analysis(state, product_id, today=None):
    """
    Product audit: monthly history, summary and purchase trail

    Returns:
        dict: product, historyData, stats, purchases, costingMethod
    """
    today = today or date.today()
    product = next((p for p in state.get('products') or [] if p.get('id') == product_id), None)
    history = product_history(state.get('sales') or [], product_id, today=today)

    total_units = sum(row['units'] for row in history)
    total_revenue = sum(row['revenue'] for row in history)
    total_profit = sum(row['profit'] for row in history)

    return {
        'product': product,
        'historyData': history,
        'stats': {
            'totalUnits': total_units,
            'totalRevenue': total_revenue,
            'totalProfit': total_profit,
            'avgMargin': total_profit / total_revenue * 100 if total_revenue > 0 else 0.0,
            'bestMonth': max(history, key=lambda row: row['units']) if history else None,
        },
        'purchases': product_purchases(state.get('purchases') or [], product_id),
        'costingMethod': 'snapshot',
    }


def fifo_lots(state, product_id):
    """
    First-in, first-out lot matching for one product

    Purchases are taken oldest first and consumed by the units that left
    stock (sold lines plus internal consumptions). Units beyond the purchase
    ledger are reported as unmatched, since they came from stock entered
    without a purchase.

    Returns:
        dict: lots (remaining quantity per purchase), consumedUnits, fifoCost,
        unmatchedUnits, remainingUnits, remainingValue, snapshotCost
    """
    sold_units = 0.0
    snapshot_cost = 0.0
    for sale in state.get('sales') or []:
        for item in sale.get('items') or []:
            if item.get('id') == product_id:
                quantity = to_number(item.get('quantity'))
                sold_units += quantity
                snapshot_cost += quantity * to_number(item.get('costPrice'))

    consumed_units = sum(
        to_number(c.get('quantity'))
        for c in state.get('consumptions') or [] if c.get('productId') == product_id
    )

    outgoing = sold_units + consumed_units
    to_match = outgoing
    fifo_cost = 0.0
    lots = []
    for purchase in sorted(product_purchases(state.get('purchases') or [], product_id),
                           key=lambda p: p.get('date') or ''):
        quantity = to_number(purchase.get('quantity'))
        unit_cost = to_number(purchase.get('unitCost'))
        taken = min(quantity, to_match)
        to_match -= taken
        fifo_cost += taken * unit_cost
        lots.append({
            'purchaseId': purchase.get('id'),
            'date': purchase.get('date'),
            'quantity': quantity,
            'unitCost': unit_cost,
            'consumed': taken,
            'remaining': quantity - taken,
        })

    return {
        'productId': product_id,
        'lots': lots,
        'soldUnits': sold_units,
        'consumedUnits': consumed_units,
        'fifoCost': fifo_cost,
        'unmatchedUnits': to_match,
        'remainingUnits': sum(lot['remaining'] for lot in lots),
        'remainingValue': sum(lot['remaining'] * lot['unitCost'] for lot in lots),
        'snapshotCost': snapshot_cost,
    }
