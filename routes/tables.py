"""
routes/tables.py — Table record routes.

Provides:
- GET /tables/<table> — All records, newest first where the table has a date/timestamp
- POST /tables/<table> — Create a record (201)
- PUT /tables/livestock/<id> — Update an animal
- DELETE /tables/livestock/<id> — Remove an animal
- POST /tables/livestock/<id>/sell — Remove an animal and book the sale

Creating a sold harvest or a purchased animal also books a transaction
(see ledger.py).
"""

from datetime import datetime, timezone

from flask import Blueprint, request, jsonify

from errors import NotFoundError, ValidationError
from extensions import get_store
from ledger import create_record, purchase_animal, record_harvest, sell_animal
from models import decode_record
from tables import BACKUP_HISTORY_TABLE, SORT_FIELDS, is_known_table

tables_bp = Blueprint('tables', __name__, url_prefix='/tables')

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _parse_timestamp(value):
    """Parse a date or ISO timestamp for sorting; unparseable values sort last."""
    if not isinstance(value, str) or not value:
        return _OLDEST
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return _OLDEST
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_newest_first(table, records):
    """Order records by the table's recency field, descending. Others keep file order."""
    field = SORT_FIELDS.get(table)
    if not field:
        return records
    return sorted(records, key=lambda r: _parse_timestamp(r.get(field)), reverse=True)


def _json_body():
    body = request.get_json(silent=True)
    if body is None:
        raise ValidationError('Request body must be JSON.')
    return body


def _require_table(table):
    if not is_known_table(table):
        raise NotFoundError(f"Unknown table: {table}")


# ========================================
# Generic Table Routes
# ========================================

@tables_bp.route('/<table>')
def list_records(table):
    """Get all records of a table (JSON API)."""
    _require_table(table)
    records = get_store().read_table(table)
    return jsonify(sort_newest_first(table, records))


@tables_bp.route('/<table>', methods=['POST'])
def add_record(table):
    """Create a record (JSON API)."""
    _require_table(table)
    if table == BACKUP_HISTORY_TABLE:
        return jsonify({'message': 'Backup history is written by GET /backup.'}), 405

    body = _json_body()
    store = get_store()

    if table == 'harvests':
        record = record_harvest(store, body)
    elif table == 'livestock':
        cost = body.get('cost') if isinstance(body, dict) else None
        record = purchase_animal(store, body, cost=cost)
    else:
        record = create_record(store, table, body)

    return jsonify(record), 201


# ========================================
# Livestock Routes
# ========================================

@tables_bp.route('/livestock/<animal_id>', methods=['PUT'])
def update_animal(animal_id):
    """Update an animal by id (shallow merge)."""
    patch = decode_record('livestock', _json_body(), partial=True)
    animal = get_store().update_record('livestock', animal_id, patch)
    return jsonify(animal)


@tables_bp.route('/livestock/<animal_id>', methods=['DELETE'])
def delete_animal(animal_id):
    """Remove an animal by id."""
    get_store().delete_record('livestock', animal_id)
    return jsonify({'message': 'Animal sold and removed'})


@tables_bp.route('/livestock/<animal_id>/sell', methods=['POST'])
def sell(animal_id):
    """Remove an animal and book the sale as revenue. Body: {price, date?}."""
    body = _json_body()
    if not isinstance(body, dict):
        raise ValidationError('Record must be a JSON object.')
    transaction = sell_animal(get_store(), animal_id, body.get('price'), body.get('date'))
    return jsonify(transaction), 201
