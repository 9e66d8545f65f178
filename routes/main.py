"""
routes/main.py — Service status and CSRF token routes.

Provides:
- GET / — Status and table list
- GET /csrf-token — Token for the X-CSRFToken header of state-changing requests
"""

from flask import Blueprint, jsonify
from flask_wtf.csrf import generate_csrf

from extensions import get_store

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Service status."""
    store = get_store()
    return jsonify({
        'status': 'ok',
        'tables': list(store.config.tables),
    })


@main_bp.route('/csrf-token')
def csrf_token():
    return jsonify({'csrfToken': generate_csrf()})
