"""
Sync Service
Mirrors the state document to a cloud database, one row per sync id
"""

import logging
from datetime import datetime, timezone
from sqlalchemy import (
    create_engine, MetaData, Table, Column, String, JSON, DateTime,
    select, update, insert
)

logger = logging.getLogger(__name__)


class CloudSyncService:
    """Push/pull of the whole state document against the cloud table"""

    def __init__(self, app):
        self.app = app
        self.cloud_engine = None
        self.metadata = MetaData()
        self.table = Table(
            app.config.get('CLOUD_SYNC_TABLE', 'coffee_sync'),
            self.metadata,
            Column('id', String(64), primary_key=True),
            Column('data', JSON, nullable=False),
            Column('updated_at', DateTime(timezone=True)),
        )

    def is_configured(self):
        """Check if a cloud database is configured and sync is enabled"""
        return bool(self.app.config.get('CLOUD_DATABASE_URL')) and \
            self.app.config.get('ENABLE_CLOUD_SYNC', True)

    def get_cloud_engine(self):
        """Get cloud database engine, creating the sync table on first use"""
        if not self.cloud_engine:
            cloud_url = self.app.config.get('CLOUD_DATABASE_URL')
            if cloud_url:
                self.cloud_engine = create_engine(cloud_url)
                self.metadata.create_all(self.cloud_engine, checkfirst=True)
        return self.cloud_engine

    def push(self, sync_id, state):
        """
        Upsert the state document under a sync id

        Args:
            sync_id: Row key shared between devices
            state: Full state document

        Returns:
            bool: Success status
        """
        if not sync_id:
            return False
        if not self.is_configured():
            logger.error("Cloud database not configured")
            return False

        try:
            engine = self.get_cloud_engine()
            values = {'data': state, 'updated_at': datetime.now(timezone.utc)}
            with engine.begin() as conn:
                result = conn.execute(
                    update(self.table).where(self.table.c.id == sync_id).values(**values)
                )
                if result.rowcount == 0:
                    conn.execute(insert(self.table).values(id=sync_id, **values))
            logger.info(f"State pushed to cloud: {sync_id}")
            return True

        except Exception as e:
            logger.error(f"Error pushing state {sync_id} to cloud: {e}")
            return False

    def pull(self, sync_id):
        """
        Fetch the state document stored under a sync id

        Returns:
            dict: State document, or None when missing or unreachable
        """
        if not sync_id:
            return None
        if not self.is_configured():
            logger.error("Cloud database not configured")
            return None

        try:
            engine = self.get_cloud_engine()
            with engine.connect() as conn:
                row = conn.execute(
                    select(self.table.c.data).where(self.table.c.id == sync_id)
                ).first()

            if row is None:
                logger.warning(f"No cloud state found for sync id {sync_id}")
                return None
            if not isinstance(row.data, dict):
                logger.error(f"Cloud state for {sync_id} is not a document")
                return None

            logger.info(f"State pulled from cloud: {sync_id}")
            return row.data

        except Exception as e:
            logger.error(f"Error pulling state {sync_id} from cloud: {e}")
            return None

    def get_sync_status(self):
        """Get cloud configuration status"""
        return {
            'configured': self.is_configured(),
            'table': self.table.name,
        }
