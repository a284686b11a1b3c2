"""
Application Configuration
Loads environment variables and provides configuration classes for different environments
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, '.env'))


class Config:
    """Base configuration class"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JSON_SORT_KEYS = False

    # Local store (browser local storage equivalent)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'tostadora.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Cloud store for sync (one row per sync id)
    CLOUD_DATABASE_URL = os.environ.get('CLOUD_DATABASE_URL')
    ENABLE_CLOUD_SYNC = os.environ.get('ENABLE_CLOUD_SYNC', 'True').lower() == 'true'
    CLOUD_SYNC_TABLE = os.environ.get('CLOUD_SYNC_TABLE', 'coffee_sync')

    # Gemini business advisor
    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-1.5-flash')
    ADVISOR_TIMEOUT = int(os.environ.get('ADVISOR_TIMEOUT', 30))

    # Business Configuration
    BUSINESS_NAME = os.environ.get('BUSINESS_NAME', 'La Tostadora')
    CURRENCY_SYMBOL = os.environ.get('CURRENCY_SYMBOL', '$')

    # Stock Alerts (default when no threshold has been saved yet)
    LOW_STOCK_THRESHOLD = int(os.environ.get('LOW_STOCK_THRESHOLD', 10))

    # Backup
    BACKUP_RETENTION_DAYS = int(os.environ.get('BACKUP_RETENTION_DAYS', 30))
    BACKUP_FOLDER = os.path.join(basedir, 'backups')

    # Logging
    LOG_FOLDER = os.path.join(basedir, 'logs')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False  # Set to True to see SQL queries


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    CLOUD_DATABASE_URL = None
    GEMINI_API_KEY = 'test-key'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
