"""
app.py — Flask entry point for the FarmFlow farm operations API.

Initializes the Flask app, builds the JSON record store and the
inference client from the config, registers all route blueprints and
the JSON error handlers.

Run: python app.py → localhost:5000
"""

import os
import logging
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError

from errors import FarmFlowError
from extensions import init_extensions
from store import get_data_dir
from routes.main import main_bp
from routes.tables import tables_bp
from routes.backup import backup_bp
from routes.reports import reports_bp
from routes.ai import ai_bp

logger = logging.getLogger(__name__)


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=os.environ.get('FARMFLOW_SECRET_KEY', 'farmflow-local-app-secret-key'),
        WTF_CSRF_CHECK_DEFAULT=True,
        DATA_DIR=get_data_dir(),
        RESEED_ON_CORRUPT=True,
        BACKUP_OPERATOR='Alice Farmer',
        INFERENCE_URL=os.environ.get('FARMFLOW_INFERENCE_URL'),
        INFERENCE_TIMEOUT=30,
        LOG_LEVEL=os.environ.get('FARMFLOW_LOG_LEVEL', 'INFO'),
    )

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    csrf = CSRFProtect(app)

    # Ensure the data directory exists; table files are created on first read
    os.makedirs(app.config['DATA_DIR'], exist_ok=True)
    init_extensions(app)

    # Register blueprints
    app.register_blueprint(main_bp)
    app.register_blueprint(tables_bp)
    app.register_blueprint(backup_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(ai_bp)

    @app.errorhandler(FarmFlowError)
    def handle_farmflow_error(error):
        """Translate application errors to {"message": ...} responses."""
        if error.status_code >= 500:
            logger.error("%s: %s", type(error).__name__, error.message)
        return jsonify({'message': error.message}), error.status_code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({'message': error.description}), 400

    return app


if __name__ == '__main__':
    app = create_app()
    # Debug mode: enabled by default for development (auto-reload on file changes)
    # Set FLASK_DEBUG=0 to disable for production
    debug = os.environ.get('FLASK_DEBUG', '1') != '0'
    app.run(host='localhost', port=5000, debug=debug)
