"""
models.py — Python dataclasses for the FarmFlow entities.

One dataclass per table. Fields without a default are required when a
record is created through the API; fields with a default are optional.
Field names match the camelCase keys stored in the JSON table files.

decode_record() is the validation step applied at the store boundary.
"""

from dataclasses import dataclass, fields, MISSING
from typing import Any, Dict, Optional, Union, get_args, get_origin

from errors import ValidationError


@dataclass
class Crop:
    """Crop planted in a field."""
    name: str
    plantedOn: str
    expectedHarvest: str
    status: str
    field: str
    id: Optional[str] = None


@dataclass
class Field:
    """Physical field and its current crop."""
    name: str
    crop: str
    area: float
    status: str
    id: Optional[str] = None


@dataclass
class Animal:
    """Individual animal in the livestock register."""
    type: str
    breed: str
    gender: str
    dob: str
    status: str = 'Healthy'
    purpose: Optional[str] = None
    id: Optional[str] = None


@dataclass
class EggLog:
    """Daily egg collection entry."""
    date: str
    quantity: int
    notes: Optional[str] = None
    id: Optional[str] = None
    createdAt: Optional[str] = None


@dataclass
class HarvestLog:
    """Harvest entry, optionally sold (saleDetails = {pricePerUnit, totalRevenue})."""
    date: str
    item: str
    quantity: float
    unit: str
    type: str = ''
    notes: Optional[str] = None
    sold: bool = False
    saleDetails: Optional[dict] = None
    id: Optional[str] = None


@dataclass
class Transaction:
    """Expense or revenue entry. Never updated or deleted once stored."""
    category: str
    amount: float
    date: str
    type: str
    description: str = ''
    evidenceUrl: Optional[str] = None
    id: Optional[str] = None
    createdAt: Optional[str] = None


@dataclass
class User:
    """Farm staff member."""
    name: str
    username: str
    email: str
    role: str
    avatarId: str = ''
    id: Optional[int] = None


@dataclass
class Alert:
    """Dashboard notification raised by one of the modules."""
    timestamp: str
    module: str
    message: str
    read: bool = False
    link: str = ''
    id: Optional[str] = None


@dataclass
class Activity:
    """Entry of the recent-activity feed."""
    activity: str
    timestamp: str
    type: str
    id: Optional[int] = None


@dataclass
class BackupHistoryEntry:
    """One GET /backup download."""
    timestamp: str
    user: str
    fileName: str
    id: Optional[str] = None


ENTITY_TYPES = {
    'crops': Crop,
    'fields': Field,
    'livestock': Animal,
    'egg-logs': EggLog,
    'harvests': HarvestLog,
    'transactions': Transaction,
    'users': User,
    'alerts': Alert,
    'recent-activities': Activity,
    'backup-history': BackupHistoryEntry,
}

# Closed value sets
CHOICES = {
    ('transactions', 'type'): ('expense', 'revenue'),
    ('users', 'role'): ('Admin', 'Manager', 'Farmer'),
}

# Generated by the store, never checked
_SKIP_FIELDS = ('id', 'createdAt')


def _accepted_types(annotation):
    """Python types a JSON value may have for a dataclass annotation."""
    if get_origin(annotation) is Union:
        accepted = ()
        for arg in get_args(annotation):
            if arg is not type(None):
                accepted += _accepted_types(arg)
        return accepted
    if annotation is float:
        return (int, float)
    return (annotation,)


def _type_matches(value, accepted):
    # bool is an int subclass; only accept it where bool is declared
    if isinstance(value, bool) and bool not in accepted:
        return False
    return isinstance(value, accepted)


def required_fields(table: str):
    """Names of the fields a new record of this table must provide."""
    entity = ENTITY_TYPES[table]
    return [
        f.name for f in fields(entity)
        if f.default is MISSING and f.default_factory is MISSING
    ]


def decode_record(table: str, payload: Any, partial: bool = False) -> Dict[str, Any]:
    """
    Validate a record payload against the table's entity schema.

    Args:
        table: Table name (kebab-case).
        payload: Decoded JSON body.
        partial: True for patches (missing required fields are allowed).

    Returns:
        A shallow copy of the payload. Keys the schema does not know are kept.

    Raises:
        ValidationError: payload is not an object, a required field is
            missing or empty, a value has the wrong type, or a value is
            outside its closed set.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Record must be a JSON object.')

    entity = ENTITY_TYPES.get(table)
    if entity is None:
        return dict(payload)

    if not partial:
        missing = [
            name for name in required_fields(table)
            if payload.get(name) is None or payload.get(name) == ''
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for f in fields(entity):
        if f.name in _SKIP_FIELDS or f.name not in payload:
            continue
        value = payload[f.name]
        if value is None:
            continue
        if not _type_matches(value, _accepted_types(f.type)):
            raise ValidationError(f"Field '{f.name}' has an invalid value: {value!r}")
        allowed = CHOICES.get((table, f.name))
        if allowed and value not in allowed:
            raise ValidationError(
                f"Field '{f.name}' must be one of: {', '.join(allowed)}"
            )

    return dict(payload)
