"""
tables.py — Table registry and kebab-case/camelCase codec.

Every table is a flat JSON file under the data directory:

    egg-logs  <->  egg-logs.json  <->  {"eggLogs": [...]}

The table name (kebab-case) is the file stem and the key used in backup
bundles. The wrapper key (camelCase) is the sole top-level property
inside the file.
"""

import re

KNOWN_TABLES = (
    'alerts',
    'crops',
    'egg-logs',
    'fields',
    'livestock',
    'recent-activities',
    'transactions',
    'users',
    'harvests',
    'backup-history',
)

BACKUP_HISTORY_TABLE = 'backup-history'

# Natural recency field per table, listed newest first by GET /tables/<table>
SORT_FIELDS = {
    'egg-logs': 'date',
    'harvests': 'date',
    'transactions': 'date',
    'alerts': 'timestamp',
    'backup-history': 'timestamp',
}

# Prefix used when the store generates an id for a new record
ID_PREFIXES = {
    'alerts': 'ALERT',
    'crops': 'CROP',
    'egg-logs': 'LOG',
    'fields': 'F',
    'recent-activities': 'ACT',
    'transactions': 'TXN',
    'users': 'USR',
    'harvests': 'HARV',
    'backup-history': 'BKP',
}

# Entities that define a createdAt field
CREATED_AT_TABLES = frozenset({'egg-logs', 'transactions'})

_KEBAB_RE = re.compile(r'-([a-z])')
_CAMEL_RE = re.compile(r'([A-Z])')


def to_file_name(table: str) -> str:
    """Physical file name for a table: 'egg-logs' -> 'egg-logs.json'."""
    return f'{table}.json'


def from_file_name(file_name: str) -> str:
    """Table name from a file name: 'egg-logs.json' -> 'egg-logs'."""
    if file_name.endswith('.json'):
        return file_name[:-len('.json')]
    return file_name


def to_wrapper_key(table: str) -> str:
    """In-file wrapper key: every '-x' becomes 'X' ('egg-logs' -> 'eggLogs')."""
    return _KEBAB_RE.sub(lambda m: m.group(1).upper(), table)


def from_wrapper_key(key: str) -> str:
    """Inverse of to_wrapper_key: 'recentActivities' -> 'recent-activities'."""
    return _CAMEL_RE.sub(lambda m: '-' + m.group(1).lower(), key)


def is_known_table(table: str) -> bool:
    return table in KNOWN_TABLES


def is_known_file(file_name: str) -> bool:
    return from_file_name(file_name) in KNOWN_TABLES and file_name.endswith('.json')
