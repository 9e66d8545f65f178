"""
tests/test_api.py — HTTP tests for the table, backup and restore routes.
"""

import io
import json
import os

import pytest

from app import create_app
from seed_data import SEED_DATA


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'DATA_DIR': str(tmp_path / 'data'),
        'SECRET_KEY': 'dev-key-for-testing',
        'WTF_CSRF_ENABLED': False,
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _upload(client, content, filename='backup.json'):
    return client.post(
        '/restore',
        data={'backup': (io.BytesIO(content), filename)},
        content_type='multipart/form-data',
    )


# ========================================
# Tables
# ========================================

class TestTables:

    def test_list_is_sorted_newest_first(self, client):
        transactions = client.get('/tables/transactions').get_json()
        assert [t['id'] for t in transactions] == ['TXN-5', 'TXN-4', 'TXN-3', 'TXN-2', 'TXN-1']

        alerts = client.get('/tables/alerts').get_json()
        assert alerts[0]['id'] == 'ALERT-001'
        assert alerts[-1]['id'] == 'ALERT-005'

    def test_unsorted_tables_keep_file_order(self, client):
        crops = client.get('/tables/crops').get_json()
        assert [c['id'] for c in crops] == [c['id'] for c in SEED_DATA['crops']]

    def test_create_transaction(self, client):
        rv = client.post('/tables/transactions', json={
            'id': 'MINE',
            'category': 'Seeds',
            'amount': 350,
            'date': '2024-08-01T00:00:00Z',
            'description': 'Wheat seed',
            'type': 'expense',
        })
        assert rv.status_code == 201
        stored = rv.get_json()
        assert stored['id'].startswith('TXN-')
        assert stored['createdAt'].endswith('Z')

        listed = client.get('/tables/transactions').get_json()
        assert listed[0]['id'] == stored['id']

    def test_create_with_invalid_type(self, client):
        rv = client.post('/tables/transactions', json={
            'category': 'Gift', 'amount': 1, 'date': '2024-08-01', 'type': 'gift',
        })
        assert rv.status_code == 400

    def test_create_egg_log(self, client):
        rv = client.post('/tables/egg-logs', json={'date': '2024-07-21T10:00:00Z', 'quantity': 47})
        assert rv.status_code == 201
        assert rv.get_json()['id'].startswith('LOG-')
        assert client.get('/tables/egg-logs').get_json()[0]['quantity'] == 47

    def test_non_json_body(self, client):
        rv = client.post('/tables/crops', data='name=Rice')
        assert rv.status_code == 400
        assert rv.get_json()['message'] == 'Request body must be JSON.'

    def test_write_failure_returns_json_error(self, client, app, monkeypatch):
        client.get('/tables/crops')

        def read_only(table, records):
            raise OSError('read-only file system')

        monkeypatch.setattr(app.extensions['record_store'], 'write_table', read_only)
        rv = client.post('/tables/crops', json={
            'name': 'Rice', 'plantedOn': '2024-06-01', 'expectedHarvest': '2024-10-01',
            'status': 'Planted', 'field': 'South Field',
        })

        assert rv.status_code == 503
        assert 'could not be written' in rv.get_json()['message']

    def test_backup_history_is_read_only(self, client):
        rv = client.post('/tables/backup-history', json={'user': 'x'})
        assert rv.status_code == 405


# ========================================
# Harvests
# ========================================

class TestHarvests:

    def test_sold_harvest_books_revenue(self, client):
        rv = client.post('/tables/harvests', json={
            'item': 'Wheat',
            'quantity': 10,
            'unit': 'quintal',
            'date': '2024-07-01',
            'sold': True,
            'pricePerUnit': 2000,
        })
        assert rv.status_code == 201
        harvest = rv.get_json()
        assert harvest['id'].startswith('HARV-')
        assert harvest['saleDetails'] == {'pricePerUnit': 2000, 'totalRevenue': 20000}

        transactions = client.get('/tables/transactions').get_json()
        sale = [t for t in transactions if t['description'] == 'Sale of 10 quintal of Wheat']
        assert len(sale) == 1
        assert sale[0]['category'] == 'Livestock Sale'
        assert sale[0]['amount'] == 20000
        assert sale[0]['type'] == 'revenue'
        assert sale[0]['date'] == '2024-07-01'

    def test_sold_without_price_writes_nothing(self, client):
        harvests_before = len(client.get('/tables/harvests').get_json())
        transactions_before = len(client.get('/tables/transactions').get_json())

        rv = client.post('/tables/harvests', json={
            'item': 'Wheat', 'quantity': 10, 'unit': 'quintal', 'date': '2024-07-01', 'sold': True,
        })

        assert rv.status_code == 400
        assert rv.get_json()['message'] == 'Valid pricePerUnit is required for sold items'
        assert len(client.get('/tables/harvests').get_json()) == harvests_before
        assert len(client.get('/tables/transactions').get_json()) == transactions_before

    def test_missing_item(self, client):
        rv = client.post('/tables/harvests', json={'quantity': 3, 'unit': 'kg', 'date': '2024-07-01'})
        assert rv.status_code == 400
        assert rv.get_json()['message'] == 'Missing required fields'

    def test_unsold_harvest_books_nothing(self, client):
        transactions_before = len(client.get('/tables/transactions').get_json())
        rv = client.post('/tables/harvests', json={
            'item': 'Eggs', 'quantity': 6, 'unit': 'dozen', 'date': '2024-07-22', 'type': 'Eggs',
        })
        assert rv.status_code == 201
        assert rv.get_json()['sold'] is False
        assert 'saleDetails' not in rv.get_json()
        assert len(client.get('/tables/transactions').get_json()) == transactions_before


# ========================================
# Livestock
# ========================================

class TestLivestock:

    def test_update_animal(self, client):
        rv = client.put('/tables/livestock/COW-001', json={'status': 'Under Treatment'})
        assert rv.status_code == 200
        assert rv.get_json()['status'] == 'Under Treatment'
        assert rv.get_json()['breed'] == 'Holstein'

    def test_update_missing_animal(self, client):
        rv = client.put('/tables/livestock/COW-999', json={'status': 'Sick'})
        assert rv.status_code == 404

    def test_delete_animal(self, client):
        rv = client.delete('/tables/livestock/GOA-001')
        assert rv.status_code == 200
        assert rv.get_json() == {'message': 'Animal sold and removed'}
        ids = [a['id'] for a in client.get('/tables/livestock').get_json()]
        assert 'GOA-001' not in ids

    def test_delete_missing_animal(self, client):
        assert client.delete('/tables/livestock/GOA-999').status_code == 404

    def test_purchase_books_expense(self, client):
        rv = client.post('/tables/livestock', json={
            'type': 'Goat', 'breed': 'Boer', 'gender': 'Male', 'dob': '2024-01-10', 'cost': 3000,
        })
        assert rv.status_code == 201
        animal = rv.get_json()
        assert animal['id'].startswith('GOA-')
        assert animal['status'] == 'Healthy'
        assert animal['purpose'] == 'Growing'
        assert 'cost' not in animal

        transactions = client.get('/tables/transactions').get_json()
        purchase = [t for t in transactions if t['category'] == 'Livestock Purchase']
        assert len(purchase) == 1
        assert purchase[0]['amount'] == 3000
        assert purchase[0]['type'] == 'expense'
        assert animal['id'] in purchase[0]['description']

    def test_sell_animal(self, client):
        rv = client.post('/tables/livestock/BUF-001/sell', json={'price': 45000})
        assert rv.status_code == 201
        assert rv.get_json()['description'] == 'Sold Buffalo (Murrah) with ID BUF-001'

        ids = [a['id'] for a in client.get('/tables/livestock').get_json()]
        assert 'BUF-001' not in ids

    def test_sell_requires_price(self, client):
        rv = client.post('/tables/livestock/BUF-001/sell', json={'price': 0})
        assert rv.status_code == 400
        ids = [a['id'] for a in client.get('/tables/livestock').get_json()]
        assert 'BUF-001' in ids


# ========================================
# Backup and Restore
# ========================================

class TestBackupRestore:

    def test_backup_download(self, client):
        rv = client.get('/backup')
        assert rv.status_code == 200
        bundle = rv.get_json()
        timestamp = bundle['_backupMetadata']['timestamp']
        assert rv.headers['Content-Disposition'] == f'attachment; filename="farmflow-backup-{timestamp}.json"'
        assert bundle['_backupMetadata']['user'] == 'Alice Farmer'
        assert 'backup-history' not in bundle

        history = client.get('/backup-history').get_json()
        assert len(history) == 1
        assert history[0]['timestamp'] == timestamp

    def test_restore_brings_back_deleted_record(self, client, app):
        backup = client.get('/backup')

        # Remove an animal straight from the file
        path = os.path.join(app.config['DATA_DIR'], 'livestock.json')
        with open(path, encoding='utf-8') as f:
            document = json.load(f)
        document['livestock'] = [a for a in document['livestock'] if a['id'] != 'CHI-002']
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(document, f)
        assert 'CHI-002' not in [a['id'] for a in client.get('/tables/livestock').get_json()]

        rv = _upload(client, backup.data)

        assert rv.status_code == 200
        assert rv.get_json()['message'] == 'Restore successful.'
        assert 'livestock' in rv.get_json()['restoredTables']
        assert 'CHI-002' in [a['id'] for a in client.get('/tables/livestock').get_json()]

    def test_restore_without_file(self, client):
        rv = client.post('/restore', data={}, content_type='multipart/form-data')
        assert rv.status_code == 400
        assert rv.get_json() == {'message': 'No backup file uploaded.'}

    def test_restore_with_invalid_json(self, client):
        rv = _upload(client, b'{"livestock": [')
        assert rv.status_code == 500
        assert rv.get_json()['message']
        assert len(client.get('/tables/livestock').get_json()) == len(SEED_DATA['livestock'])
