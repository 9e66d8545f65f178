"""
routes/backup.py — Backup download, backup history and restore routes.

Provides:
- GET /backup — Download every table as one JSON bundle (logs a history entry)
- GET /backup-history — Past backups, newest first
- POST /restore — Overwrite tables from an uploaded bundle (multipart field 'backup')
"""

from flask import Blueprint, current_app, request, jsonify

from extensions import get_store
from utils.backup import (
    METADATA_KEY, backup_file_name, create_backup, list_backup_history,
    parse_bundle, restore_bundle
)

backup_bp = Blueprint('backup', __name__)


@backup_bp.route('/backup')
def download_backup():
    """Download a full backup bundle."""
    bundle, _entry = create_backup(get_store(), current_app.config['BACKUP_OPERATOR'])
    filename = backup_file_name(bundle[METADATA_KEY]['timestamp'])

    response = jsonify(bundle)
    response.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@backup_bp.route('/backup-history')
def backup_history():
    """List backup history entries (JSON API)."""
    return jsonify(list_backup_history(get_store()))


@backup_bp.route('/restore', methods=['POST'])
def restore():
    """Restore all tables from an uploaded backup bundle."""
    file = request.files.get('backup')
    if file is None:
        return jsonify({'message': 'No backup file uploaded.'}), 400

    bundle = parse_bundle(file.read())
    restored = restore_bundle(get_store(), bundle)
    return jsonify({'message': 'Restore successful.', 'restoredTables': restored})
