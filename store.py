"""
store.py — JSON-file record store, one flat file per table.

Each table lives in <data_dir>/<table>.json as {"<wrapperKey>": [records]}.
Every read re-parses the file; nothing is cached between calls.

Missing or empty files are created from seed_data on first read. Files
that exist but cannot be decoded are reseeded too unless the store is
configured with reseed_on_corrupt=False, in which case CorruptDataError
is raised.

Concurrency: append/update/delete hold a per-table lock for their
read-modify-write cycle. read_table/write_table are not synchronized and
writes are plain overwrites (no temp file, no file lock), so a caller
composing them, or a second process using the same data directory, can
lose updates.
"""

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from errors import CorruptDataError, NotFoundError, StorageUnavailable
from seed_data import seed_records
from tables import KNOWN_TABLES, ID_PREFIXES, to_file_name, to_wrapper_key

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data')

# Tables whose ids are integer counters rather than prefixed strings
COUNTER_ID_TABLES = frozenset({'users', 'recent-activities'})


def get_data_dir() -> str:
    """Get the data directory from environment or default."""
    return os.environ.get('FARMFLOW_DATA_DIR', DEFAULT_DATA_DIR)


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class StoreConfig:
    """Where the table files live and how unreadable files are treated."""
    data_dir: str
    tables: Tuple[str, ...] = KNOWN_TABLES
    reseed_on_corrupt: bool = True


class RecordStore:
    """Read/modify/write access to the flat JSON tables."""

    def __init__(self, config: StoreConfig):
        self.config = config
        self._locks = {table: threading.Lock() for table in config.tables}

    # ========================================
    # Paths
    # ========================================

    def table_path(self, table: str) -> str:
        """Absolute path of a table file. Unknown tables raise NotFoundError."""
        if table not in self.config.tables:
            raise NotFoundError(f"Unknown table: {table}")
        return os.path.join(self.config.data_dir, to_file_name(table))

    # ========================================
    # Whole-table primitives
    # ========================================

    def read_table(self, table: str) -> List[Dict[str, Any]]:
        """
        Read all records of a table.

        Returns:
            The stored record list, or the seed records if the file was
            missing, empty, unreadable or (with reseed_on_corrupt) corrupt.

        Raises:
            CorruptDataError: file content cannot be decoded and the store
                is configured not to reseed.
            StorageUnavailable: the seed could not be written.
        """
        path = self.table_path(table)

        if not os.path.exists(path):
            logger.info("Table '%s' not found, creating it with seed data", table)
            return self._reseed(table)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            error = StorageUnavailable(f"Table '{table}' could not be read: {e}")
            logger.warning("%s; reseeding with defaults", error.message)
            return self._reseed(table)

        if not content.strip():
            return self._reseed(table)

        key = to_wrapper_key(table)
        try:
            document = json.loads(content)
            records = document[key]
            if not isinstance(records, list):
                raise TypeError(f"'{key}' is not a list")
        except (ValueError, KeyError, TypeError) as e:
            error = CorruptDataError(f"Table '{table}' could not be decoded: {e}")
            if not self.config.reseed_on_corrupt:
                raise error from e
            logger.warning("%s; reseeding with defaults", error.message)
            return self._reseed(table)

        return records

    def write_table(self, table: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite a table file with {wrapperKey: records}."""
        path = self.table_path(table)
        os.makedirs(self.config.data_dir, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({to_wrapper_key(table): records}, f, ensure_ascii=False, indent=2)

    def _save(self, table, records):
        try:
            self.write_table(table, records)
        except OSError as e:
            raise StorageUnavailable(f"Table '{table}' could not be written: {e}") from e

    def _reseed(self, table):
        records = seed_records(table)
        try:
            self.write_table(table, records)
        except OSError as e:
            raise StorageUnavailable(f"Table '{table}' could not be initialized: {e}") from e
        return records

    # ========================================
    # Record operations
    # ========================================

    def get_record(self, table: str, record_id) -> Dict[str, Any]:
        """Find a record by id (linear scan)."""
        for record in self.read_table(table):
            if _same_id(record.get('id'), record_id):
                return record
        raise NotFoundError(f"Record '{record_id}' not found in {table}")

    def append_record(self, table: str, record: Dict[str, Any],
                      id_prefix: Optional[str] = None) -> Dict[str, Any]:
        """
        Append a record, generating its id when it has none.

        Args:
            table: Table name.
            record: Record to store.
            id_prefix: Prefix for the generated id; defaults to the table's.

        Returns:
            The stored record.
        """
        with self._locks[table]:
            records = self.read_table(table)
            stored = dict(record)
            if stored.get('id') in (None, ''):
                stored['id'] = self._generate_id(table, records, id_prefix)
            records.append(stored)
            self._save(table, records)
        return stored

    def update_record(self, table: str, record_id, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Shallow-merge patch into the record with the given id. The id itself is kept."""
        with self._locks[table]:
            records = self.read_table(table)
            for index, record in enumerate(records):
                if _same_id(record.get('id'), record_id):
                    merged = {**record, **patch, 'id': record.get('id')}
                    records[index] = merged
                    self._save(table, records)
                    return merged
        raise NotFoundError(f"Record '{record_id}' not found in {table}")

    def delete_record(self, table: str, record_id) -> Dict[str, Any]:
        """Remove the record with the given id and return it."""
        with self._locks[table]:
            records = self.read_table(table)
            remaining = [r for r in records if not _same_id(r.get('id'), record_id)]
            if len(remaining) == len(records):
                raise NotFoundError(f"Record '{record_id}' not found in {table}")
            removed = next(r for r in records if _same_id(r.get('id'), record_id))
            self._save(table, remaining)
        return removed

    def prepend_record(self, table: str, record: Dict[str, Any],
                       id_prefix: Optional[str] = None) -> Dict[str, Any]:
        """Insert a record at the front of the table (newest-first logs), generating its id when it has none."""
        with self._locks[table]:
            records = self.read_table(table)
            stored = dict(record)
            if stored.get('id') in (None, ''):
                stored['id'] = self._generate_id(table, records, id_prefix)
            records.insert(0, stored)
            self._save(table, records)
        return stored

    # ========================================
    # Ids
    # ========================================

    def _generate_id(self, table, records, id_prefix=None):
        existing = {str(r.get('id')) for r in records}

        if table in COUNTER_ID_TABLES and id_prefix is None:
            numeric = [r['id'] for r in records if isinstance(r.get('id'), int)]
            return max(numeric, default=0) + 1

        prefix = id_prefix or ID_PREFIXES.get(table, table[:3].upper())
        stamp = int(time.time() * 1000)
        candidate = f'{prefix}-{stamp}'
        while candidate in existing:
            stamp += 1
            candidate = f'{prefix}-{stamp}'
        return candidate


def _same_id(stored, wanted):
    # URL ids arrive as strings; users and activities store integers
    return stored is not None and str(stored) == str(wanted)
