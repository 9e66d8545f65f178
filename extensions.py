"""
extensions.py — Per-app service objects.

create_app() builds one RecordStore and one InferenceClient from the app
config and keeps them in app.extensions; routes reach them through the
accessors below.
"""

from flask import current_app

from store import RecordStore, StoreConfig
from utils.inference import InferenceClient


def init_extensions(app):
    """Build the record store and inference client for an app."""
    store_config = StoreConfig(
        data_dir=app.config['DATA_DIR'],
        reseed_on_corrupt=app.config['RESEED_ON_CORRUPT'],
    )
    app.extensions['record_store'] = RecordStore(store_config)
    app.extensions['inference_client'] = InferenceClient(
        app.config.get('INFERENCE_URL'),
        timeout=app.config['INFERENCE_TIMEOUT'],
    )


def get_store() -> RecordStore:
    return current_app.extensions['record_store']


def get_inference_client() -> InferenceClient:
    return current_app.extensions['inference_client']
