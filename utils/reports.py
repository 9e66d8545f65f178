"""
utils/reports.py — Farm summary figures and Excel report generation.

build_summary() aggregates the tables the Reports page shows: revenue,
expenses by category, net result, eggs collected, herd composition and
harvest sales. generate_report_workbook() writes the same figures plus
the raw transactions and harvests to an .xlsx file with openpyxl.
"""

from collections import Counter, defaultdict
from datetime import datetime, timezone
from io import BytesIO

from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from store import RecordStore

HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E7D32', end_color='2E7D32', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='1B5E20'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)

# Amount cell colors by transaction type
TYPE_FONTS = {
    'revenue': Font(color='2E7D32'),
    'expense': Font(color='C62828'),
}


def _amount(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def build_summary(store: RecordStore):
    """
    Aggregate the dashboard report figures.

    Returns:
        Dict with keys: total_revenue, total_expenses, net, expenses_by_category,
        eggs_collected, livestock_by_type, harvest_revenue, harvests_sold.
    """
    transactions = store.read_table('transactions')
    egg_logs = store.read_table('egg-logs')
    livestock = store.read_table('livestock')
    harvests = store.read_table('harvests')

    total_revenue = sum(_amount(t.get('amount')) for t in transactions if t.get('type') == 'revenue')
    total_expenses = sum(_amount(t.get('amount')) for t in transactions if t.get('type') == 'expense')

    expenses_by_category = defaultdict(int)
    for t in transactions:
        if t.get('type') == 'expense':
            expenses_by_category[t.get('category') or 'Other'] += _amount(t.get('amount'))

    sold = [h for h in harvests if h.get('sold')]
    harvest_revenue = sum(_amount((h.get('saleDetails') or {}).get('totalRevenue')) for h in sold)

    return {
        'total_revenue': total_revenue,
        'total_expenses': total_expenses,
        'net': total_revenue - total_expenses,
        'expenses_by_category': dict(expenses_by_category),
        'eggs_collected': sum(_amount(log.get('quantity')) for log in egg_logs),
        'livestock_by_type': dict(Counter(a.get('type') or 'Unknown' for a in livestock)),
        'harvest_revenue': harvest_revenue,
        'harvests_sold': len(sold),
    }


def _write_header(ws, columns):
    for col_idx, col_name in enumerate(columns, 1):
        cell = ws.cell(row=1, column=col_idx, value=col_name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER
    ws.freeze_panes = 'A2'


def _build_summary_sheet(ws, summary):
    _write_header(ws, ['Metric', 'Value'])
    rows = [
        ('Total revenue', summary['total_revenue']),
        ('Total expenses', summary['total_expenses']),
        ('Net result', summary['net']),
        ('Harvest revenue', summary['harvest_revenue']),
        ('Harvests sold', summary['harvests_sold']),
        ('Eggs collected', summary['eggs_collected']),
    ]
    rows += [(f'Expenses: {cat}', amount) for cat, amount in sorted(summary['expenses_by_category'].items())]
    rows += [(f'Livestock: {kind}', count) for kind, count in sorted(summary['livestock_by_type'].items())]

    for row_idx, (label, value) in enumerate(rows, 2):
        ws.cell(row=row_idx, column=1, value=label).border = CELL_BORDER
        ws.cell(row=row_idx, column=2, value=value).border = CELL_BORDER

    ws.column_dimensions['A'].width = 30
    ws.column_dimensions['B'].width = 16


def _build_transactions_sheet(ws, transactions):
    _write_header(ws, ['Date', 'Category', 'Description', 'Type', 'Amount'])
    ordered = sorted(transactions, key=lambda t: t.get('date') or '', reverse=True)
    for row_idx, t in enumerate(ordered, 2):
        ws.cell(row=row_idx, column=1, value=t.get('date')).border = CELL_BORDER
        ws.cell(row=row_idx, column=2, value=t.get('category')).border = CELL_BORDER
        ws.cell(row=row_idx, column=3, value=t.get('description') or '').border = CELL_BORDER
        ws.cell(row=row_idx, column=4, value=t.get('type')).border = CELL_BORDER
        amount_cell = ws.cell(row=row_idx, column=5, value=_amount(t.get('amount')))
        amount_cell.border = CELL_BORDER
        if t.get('type') in TYPE_FONTS:
            amount_cell.font = TYPE_FONTS[t['type']]

    ws.column_dimensions['A'].width = 24
    ws.column_dimensions['B'].width = 18
    ws.column_dimensions['C'].width = 40
    ws.column_dimensions['D'].width = 10
    ws.column_dimensions['E'].width = 14


def _build_harvests_sheet(ws, harvests):
    _write_header(ws, ['Date', 'Item', 'Type', 'Quantity', 'Unit', 'Sold', 'Revenue', 'Notes'])
    ordered = sorted(harvests, key=lambda h: h.get('date') or '', reverse=True)
    for row_idx, h in enumerate(ordered, 2):
        sale = h.get('saleDetails') or {}
        values = [
            h.get('date'), h.get('item'), h.get('type') or '', h.get('quantity'),
            h.get('unit'), 'Yes' if h.get('sold') else 'No',
            sale.get('totalRevenue', ''), h.get('notes') or '',
        ]
        for col_idx, value in enumerate(values, 1):
            ws.cell(row=row_idx, column=col_idx, value=value).border = CELL_BORDER

    for col, width in zip('ABCDEFGH', (14, 18, 12, 10, 10, 8, 14, 30)):
        ws.column_dimensions[col].width = width


def generate_report_workbook(store: RecordStore):
    """Generate the farm report workbook.

    Returns:
        (BytesIO buffer, filename)
    """
    import openpyxl

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Summary'
    _build_summary_sheet(ws, build_summary(store))

    _build_transactions_sheet(wb.create_sheet(title='Transactions'), store.read_table('transactions'))
    _build_harvests_sheet(wb.create_sheet(title='Harvests'), store.read_table('harvests'))

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    stamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')
    return buffer, f'farmflow_report_{stamp}.xlsx'
