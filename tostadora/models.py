"""
Database Models
SQLAlchemy ORM models backing the local store
"""

from datetime import datetime
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


class StorageEntry(db.Model):
    """Key/value entry of the local store, one JSON text per key"""
    __tablename__ = 'local_storage'

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<StorageEntry {self.key}>'


class ErrorLog(db.Model):
    """Unhandled errors captured with their request context"""
    __tablename__ = 'error_logs'

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    error_type = db.Column(db.String(128), nullable=False, index=True)
    error_message = db.Column(db.Text, nullable=False)
    traceback = db.Column(db.Text)

    request_url = db.Column(db.String(512))
    request_method = db.Column(db.String(10))
    request_data = db.Column(db.Text)
    ip_address = db.Column(db.String(64))
    status_code = db.Column(db.Integer, index=True)
    blueprint = db.Column(db.String(64))
    endpoint = db.Column(db.String(128))

    def __repr__(self):
        return f'<ErrorLog {self.error_type} {self.status_code}>'
