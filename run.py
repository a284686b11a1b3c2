"""
Application Entry Point
Initializes and runs the Flask application
"""

import os
import logging
from tostadora import create_app, db, get_store, get_backup_service

# Determine configuration environment
config_name = os.environ.get('FLASK_ENV', 'development')
app = create_app(config_name)

# Setup logging
if not os.path.exists(app.config['LOG_FOLDER']):
    os.makedirs(app.config['LOG_FOLDER'])

logging.basicConfig(
    level=getattr(logging, app.config['LOG_LEVEL']),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(os.path.join(app.config['LOG_FOLDER'], 'app.log')),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


@app.shell_context_processor
def make_shell_context():
    """Make the database and the state store available in Flask shell"""
    from tostadora import models
    return {
        'db': db,
        'store': get_store(),
        'StorageEntry': models.StorageEntry,
        'ErrorLog': models.ErrorLog
    }


@app.cli.command()
def init_db():
    """Create the local store tables"""
    logger.info("Initializing database...")
    db.create_all()
    logger.info("Database initialized successfully!")


@app.cli.command()
def backup_data():
    """Write a backup file of the current data"""
    logger.info("Starting data backup...")
    backup_path = get_backup_service().backup_data()
    if backup_path:
        logger.info(f"Backup completed: {backup_path}")
    else:
        logger.error("Backup failed")


@app.cli.command()
def push_cloud():
    """Upload the current data under the linked sync key"""
    store = get_store()
    if not store.sync_id:
        logger.error("No sync key linked, nothing to push")
        return
    logger.info(f"Pushing data to cloud ({store.sync_id})...")
    if store.push_to_cloud():
        logger.info("Push completed!")
    else:
        logger.error("Push failed")


@app.cli.command()
def pull_cloud():
    """Replace local data with the cloud copy of the linked sync key"""
    store = get_store()
    if not store.sync_id:
        logger.error("No sync key linked, nothing to pull")
        return
    logger.info(f"Pulling data from cloud ({store.sync_id})...")
    if store.pull_from_cloud():
        logger.info("Pull completed!")
    else:
        logger.error("Pull failed")


if __name__ == '__main__':
    is_dev = os.environ.get('FLASK_ENV', 'development') == 'development'

    logger.info(f"Starting {app.config['BUSINESS_NAME']} POS System...")
    logger.info(f"Debug mode: {is_dev}")

    app.run(
        host='0.0.0.0',
        port=5001,
        debug=is_dev
    )
