"""
Backup Service
Writes export files of the state document and handles their retention
"""

import os
import logging
from datetime import datetime, timedelta
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

BACKUP_PREFIX = 'backup_latostadora_'
BACKUP_SUFFIX = '.json'


class BackupService:
    """Service for state document backups"""

    def __init__(self, app, store):
        self.app = app
        self.store = store

    @property
    def backup_folder(self):
        return self.app.config.get('BACKUP_FOLDER')

    def _is_backup(self, filename):
        return filename.startswith(BACKUP_PREFIX) and filename.endswith(BACKUP_SUFFIX)

    def backup_data(self):
        """
        Write the current state to the backup folder

        One file per day; a second backup on the same day replaces the first.

        Returns:
            str: Path of the backup file, or None on failure
        """
        try:
            os.makedirs(self.backup_folder, exist_ok=True)
            backup_path = os.path.join(self.backup_folder, self.store.export_filename())

            with open(backup_path, 'w', encoding='utf-8') as f:
                f.write(self.store.export_data())
            logger.info(f"Data backup created: {os.path.basename(backup_path)}")

            self.cleanup_old_backups()
            return backup_path

        except OSError as e:
            logger.error(f"Error creating backup: {e}")
            return None

    def cleanup_old_backups(self):
        """Remove backups older than the retention period"""
        retention_days = self.app.config.get('BACKUP_RETENTION_DAYS', 30)
        cutoff_date = datetime.now() - timedelta(days=retention_days)
        removed = 0

        try:
            for filename in os.listdir(self.backup_folder):
                if not self._is_backup(filename):
                    continue
                filepath = os.path.join(self.backup_folder, filename)
                if datetime.fromtimestamp(os.path.getmtime(filepath)) < cutoff_date:
                    os.remove(filepath)
                    removed += 1
                    logger.info(f"Deleted old backup: {filename}")
        except OSError as e:
            logger.error(f"Error cleaning up old backups: {e}")

        return removed

    def list_backups(self):
        """
        Get list of available backups

        Returns:
            list: Backup files with metadata, newest first
        """
        if not os.path.isdir(self.backup_folder):
            return []

        backups = []
        for filename in os.listdir(self.backup_folder):
            if not self._is_backup(filename):
                continue
            filepath = os.path.join(self.backup_folder, filename)
            backups.append({
                'filename': filename,
                'size': os.path.getsize(filepath),
                'created': datetime.fromtimestamp(os.path.getmtime(filepath)).isoformat(),
            })

        backups.sort(key=lambda x: x['created'], reverse=True)
        return backups

    def restore_backup(self, backup_filename):
        """
        Replace the state with a backup file

        Args:
            backup_filename: Name of a file in the backup folder

        Returns:
            bool: False when the file does not exist

        Raises:
            ImportDataError: The file is not a state document
        """
        filename = secure_filename(backup_filename or '')
        backup_path = os.path.join(self.backup_folder, filename)

        if not filename or not os.path.isfile(backup_path):
            logger.error(f"Backup file not found: {backup_filename}")
            return False

        with open(backup_path, encoding='utf-8') as f:
            self.store.import_data(f.read())
        logger.info(f"Data restored from: {filename}")
        return True
