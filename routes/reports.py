"""
routes/reports.py — Report figures and Excel export routes.

Provides:
- GET /reports/summary — Financial and operational totals (JSON)
- GET /reports/export — Download the report workbook (.xlsx)
"""

from flask import Blueprint, jsonify, send_file

from extensions import get_store
from utils.reports import build_summary, generate_report_workbook

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/summary')
def summary():
    return jsonify(build_summary(get_store()))


@reports_bp.route('/export')
def export_workbook():
    """Export transactions, harvests and totals as Excel."""
    buffer, filename = generate_report_workbook(get_store())
    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
