"""
utils/backup.py — Backup bundle assembly and restore.

A backup bundle is one JSON document holding every table:

    {
      "_backupMetadata": {"timestamp": ..., "user": ..., "version": "1.0.0"},
      "crops": [...],
      "egg-logs": [...],
      ...
    }

Keys are table names (file stems), values are the raw record arrays.
backup-history is recorded but never included in the payload.

Restore overwrites each table file listed in the bundle. It is not
transactional: if a write fails midway, tables written before the failure
keep their restored content.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from errors import RestoreError
from store import RecordStore, utc_now_iso
from tables import BACKUP_HISTORY_TABLE, is_known_file, to_file_name, to_wrapper_key

logger = logging.getLogger(__name__)

BACKUP_VERSION = '1.0.0'
METADATA_KEY = '_backupMetadata'


def backup_file_name(timestamp: str) -> str:
    """Suggested download name: farmflow-backup-<ISO timestamp>.json."""
    return f'farmflow-backup-{timestamp}.json'


def create_backup(store: RecordStore, operator: str,
                  now: Optional[datetime] = None) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """
    Snapshot every table into one bundle and log the download.

    Args:
        store: Record store to read from.
        operator: Name recorded as the backup's user.
        now: Timestamp override (tests).

    Returns:
        (bundle, history_entry). history_entry is None if logging the
        backup failed; the bundle is returned either way.
    """
    timestamp = utc_now_iso(now)

    bundle = {
        METADATA_KEY: {
            'timestamp': timestamp,
            'user': operator,
            'version': BACKUP_VERSION,
        }
    }
    for table in store.config.tables:
        if table == BACKUP_HISTORY_TABLE:
            continue
        bundle[table] = store.read_table(table)

    entry = {
        'timestamp': timestamp,
        'user': operator,
        'fileName': backup_file_name(timestamp),
    }
    try:
        entry = store.prepend_record(BACKUP_HISTORY_TABLE, entry)
    except Exception:
        # History is best-effort; the bundle still goes out
        logger.exception("Failed to write to backup history")
        entry = None

    return bundle, entry


def list_backup_history(store: RecordStore) -> List[Dict[str, Any]]:
    """Backup history entries, most recent first."""
    history = store.read_table(BACKUP_HISTORY_TABLE)
    return sorted(history, key=lambda e: e.get('timestamp') or '', reverse=True)


def parse_bundle(raw) -> Dict[str, Any]:
    """
    Decode an uploaded bundle.

    Args:
        raw: File content as bytes or str.

    Raises:
        RestoreError: content is not UTF-8, not JSON, or not a JSON object.
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')
        bundle = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise RestoreError(str(e)) from e

    if not isinstance(bundle, dict):
        raise RestoreError('Backup file must contain a JSON object.')
    return bundle


def _records_for(key, value):
    """Unwrap {wrapperKey: [...]} nesting once; otherwise take the value as is."""
    wrapper_key = to_wrapper_key(key)
    if isinstance(value, dict) and wrapper_key in value:
        value = value[wrapper_key]

    if not isinstance(value, list) or not all(isinstance(r, dict) for r in value):
        raise RestoreError(f"Backup entry '{key}' is not a list of records.")
    return value


def restore_bundle(store: RecordStore, bundle: Dict[str, Any]) -> List[str]:
    """
    Overwrite table files with the contents of a bundle.

    Keys that do not name a known table are skipped. Every entry is
    checked before the first write; a write failure stops the restore
    without rolling back tables already written.

    Returns:
        Restored table names, in bundle order.

    Raises:
        RestoreError: an entry has the wrong shape, or a write failed.
    """
    payload = {k: v for k, v in bundle.items() if k != METADATA_KEY}

    planned = []
    for key, value in payload.items():
        if not is_known_file(to_file_name(key)) or key not in store.config.tables:
            logger.warning("Skipping unknown backup entry '%s'", key)
            continue
        planned.append((key, _records_for(key, value)))

    restored = []
    for table, records in planned:
        try:
            store.write_table(table, records)
        except OSError as e:
            logger.error("Restore stopped at '%s' after %d table(s): %s", table, len(restored), e)
            raise RestoreError(str(e)) from e
        restored.append(table)

    logger.info("Restored %d table(s): %s", len(restored), ', '.join(restored))
    return restored
