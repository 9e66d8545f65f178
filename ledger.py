"""
ledger.py — Record creation and the transactions they imply.

Sold harvests and livestock purchases/sales each produce a Transaction
next to their own record. The two appends are independent file writes:
if the second one fails, the first record stays without its transaction.
"""

import logging
from typing import Any, Dict, Optional

from errors import ValidationError
from models import decode_record
from store import RecordStore, utc_now_iso
from tables import CREATED_AT_TABLES

logger = logging.getLogger(__name__)

SALE_CATEGORY = 'Livestock Sale'
PURCHASE_CATEGORY = 'Livestock Purchase'

# Tables whose client-supplied id is replaced by a generated one
GENERATED_ID_TABLES = frozenset({'egg-logs', 'transactions'})


def _positive_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if value > 0 else None


def create_record(store: RecordStore, table: str, payload: Any) -> Dict[str, Any]:
    """
    Validate and store a new record for any table.

    Assigns a generated id where the table owns its ids and stamps
    createdAt where the entity defines one.
    """
    record = decode_record(table, payload)
    if table in GENERATED_ID_TABLES:
        record.pop('id', None)
    if table in CREATED_AT_TABLES:
        record['createdAt'] = utc_now_iso()
    return store.append_record(table, record)


def add_transaction(store: RecordStore, category: str, amount, date: str,
                    description: str, kind: str) -> Dict[str, Any]:
    """Append a transaction; kind is 'expense' or 'revenue'."""
    return create_record(store, 'transactions', {
        'category': category,
        'amount': amount,
        'date': date,
        'description': description,
        'type': kind,
    })


def record_harvest(store: RecordStore, payload: Any) -> Dict[str, Any]:
    """
    Store a harvest log; a sold harvest also books a revenue transaction.

    Args:
        payload: {item, quantity, unit, date, type?, notes?, sold?, pricePerUnit?}

    Returns:
        The stored harvest record.

    Raises:
        ValidationError: required fields missing, or sold without a
            positive pricePerUnit. Nothing is written in that case.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Record must be a JSON object.')
    if not all(payload.get(k) for k in ('item', 'quantity', 'unit', 'date')):
        raise ValidationError('Missing required fields')

    harvest = {
        'date': payload['date'],
        'item': payload['item'],
        'type': payload.get('type') or '',
        'quantity': payload['quantity'],
        'unit': payload['unit'],
        'notes': payload.get('notes') or '',
        'sold': bool(payload.get('sold', False)),
    }
    harvest = decode_record('harvests', harvest)

    if harvest['sold']:
        price = _positive_number(payload.get('pricePerUnit'))
        if price is None:
            raise ValidationError('Valid pricePerUnit is required for sold items')

        total_revenue = harvest['quantity'] * price
        harvest['saleDetails'] = {
            'pricePerUnit': price,
            'totalRevenue': total_revenue,
        }

    stored = store.append_record('harvests', harvest)

    if stored['sold']:
        add_transaction(
            store,
            SALE_CATEGORY,
            stored['saleDetails']['totalRevenue'],
            stored['date'],
            f"Sale of {stored['quantity']} {stored['unit']} of {stored['item']}",
            'revenue',
        )
    return stored


def purchase_animal(store: RecordStore, payload: Any, cost=None) -> Dict[str, Any]:
    """
    Register an animal; a positive cost also books a purchase expense.

    The id is kept when the client supplies one, otherwise derived from
    the animal type (COW-..., GOA-...).
    """
    animal = decode_record('livestock', payload)
    animal.setdefault('status', 'Healthy')
    animal.setdefault('purpose', 'Growing')
    animal.pop('cost', None)

    stored = store.append_record('livestock', animal, id_prefix=animal['type'][:3].upper())

    amount = _positive_number(cost)
    if amount is not None:
        add_transaction(
            store,
            PURCHASE_CATEGORY,
            amount,
            utc_now_iso(),
            f"Purchased {stored['type']} ({stored['breed']}) with ID {stored['id']}",
            'expense',
        )
    return stored


def sell_animal(store: RecordStore, animal_id, price, date: Optional[str] = None) -> Dict[str, Any]:
    """
    Remove an animal from the register and book the sale.

    Returns:
        The revenue transaction.

    Raises:
        ValidationError: price is not a positive number (nothing written).
        NotFoundError: no animal with this id (nothing written).
    """
    amount = _positive_number(price)
    if amount is None:
        raise ValidationError('Please enter a valid selling price.')

    animal = store.delete_record('livestock', animal_id)
    logger.info("Animal %s removed from register, booking sale of %s", animal_id, amount)

    return add_transaction(
        store,
        SALE_CATEGORY,
        amount,
        date or utc_now_iso(),
        f"Sold {animal.get('type')} ({animal.get('breed')}) with ID {animal.get('id')}",
        'revenue',
    )
