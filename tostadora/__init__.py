"""
Flask Application Factory
Initializes and configures the Flask application
"""

import os
from flask import Flask, jsonify, current_app
from config import config
from tostadora.models import db


def create_app(config_name='default'):
    """
    Application factory pattern
    Creates and configures Flask application
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Validate secret key in production
    if config_name == 'production':
        if not app.config.get('SECRET_KEY') or app.config['SECRET_KEY'] == 'dev-secret-key-change-in-production':
            raise ValueError("Production requires a secure SECRET_KEY. Set it via environment variable.")
        if len(app.config['SECRET_KEY']) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters for production.")

    # Initialize extensions
    db.init_app(app)

    os.makedirs(app.config['BACKUP_FOLDER'], exist_ok=True)
    os.makedirs(app.config['LOG_FOLDER'], exist_ok=True)

    with app.app_context():
        db.create_all()

    # Application state, shared by every request of this process
    from tostadora.services.local_storage import LocalStorage
    from tostadora.services.sync_service import CloudSyncService
    from tostadora.services.backup_service import BackupService
    from tostadora.store import StateStore

    store = StateStore(LocalStorage(), CloudSyncService(app))
    app.extensions['tostadora_store'] = store
    app.extensions['tostadora_backups'] = BackupService(app, store)

    if not store.cloud_sync.is_configured():
        app.logger.info("Cloud sync disabled: CLOUD_DATABASE_URL not set")

    # Register blueprints
    from tostadora.routes.products import bp as products_bp
    app.register_blueprint(products_bp, url_prefix='/api/products')

    from tostadora.routes.inventory import bp as inventory_bp
    app.register_blueprint(inventory_bp, url_prefix='/api/inventory')

    from tostadora.routes.clients import bp as clients_bp
    app.register_blueprint(clients_bp, url_prefix='/api/clients')

    from tostadora.routes.sales import bp as sales_bp
    app.register_blueprint(sales_bp, url_prefix='/api/sales')

    from tostadora.routes.reports import bp as reports_bp
    app.register_blueprint(reports_bp, url_prefix='/api/reports')

    from tostadora.routes.sync import bp as sync_bp
    app.register_blueprint(sync_bp, url_prefix='/api/sync')

    from tostadora.routes.data import bp as data_bp
    app.register_blueprint(data_bp, url_prefix='/api/data')

    from tostadora.routes.advisor import bp as advisor_bp
    app.register_blueprint(advisor_bp, url_prefix='/api/advisor')

    @app.route('/')
    def index():
        """Service banner"""
        return jsonify({
            'success': True,
            'name': app.config.get('BUSINESS_NAME', 'La Tostadora'),
            'currency': app.config.get('CURRENCY_SYMBOL', '$'),
        })

    # Error handlers
    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        from tostadora.utils.error_logger import log_error
        db.session.rollback()
        log_error(getattr(error, 'original_exception', None) or error, 500)
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    return app


def get_store():
    """State store of the current application"""
    return current_app.extensions['tostadora_store']


def get_backup_service():
    return current_app.extensions['tostadora_backups']
