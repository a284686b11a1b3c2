"""
Local Storage Service
Key/value store holding one JSON document per key
"""

import json
import logging
from sqlalchemy.exc import SQLAlchemyError
from tostadora.models import db, StorageEntry
from tostadora.domain import empty_state
from tostadora.utils.helpers import to_number

logger = logging.getLogger(__name__)

STATE_KEY = 'coffeemaster_data'
STOCK_THRESHOLD_KEY = 'coffeemaster_stock_threshold'
MONTHLY_GOAL_KEY = 'coffeemaster_monthly_goal'


class LocalStorage:
    """Local persistence for the state document and the dashboard settings"""

    def get_item(self, key):
        """
        Read the raw text stored under a key

        Returns:
            str: Stored text, or None when the key is missing
        """
        entry = db.session.get(StorageEntry, key)
        return entry.value if entry else None

    def set_item(self, key, value):
        """
        Store text under a key

        Returns:
            bool: Success status
        """
        try:
            entry = db.session.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.session.add(StorageEntry(key=key, value=value))
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error writing local storage key {key}: {e}")
            return False

    def remove_item(self, key):
        """Delete a key if present"""
        try:
            entry = db.session.get(StorageEntry, key)
            if entry:
                db.session.delete(entry)
                db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error removing local storage key {key}: {e}")
            return False

    def load_state(self):
        """
        Read the state document

        A missing key or unparseable text starts from an empty state.

        Returns:
            dict: State document
        """
        saved = self.get_item(STATE_KEY)
        if not saved:
            return empty_state()
        try:
            state = json.loads(saved)
        except ValueError as e:
            logger.warning(f"Stored state could not be parsed, starting empty: {e}")
            return empty_state()
        if not isinstance(state, dict):
            logger.warning("Stored state is not a document, starting empty")
            return empty_state()
        return state

    def save_state(self, state):
        """Write the state document"""
        return self.set_item(STATE_KEY, json.dumps(state))

    def clear_state(self):
        """Forget the stored state document"""
        return self.remove_item(STATE_KEY)

    def get_stock_threshold(self, default=10):
        """Low-stock threshold; 0 or unset falls back to the default"""
        return to_number(self.get_item(STOCK_THRESHOLD_KEY)) or default

    def set_stock_threshold(self, value):
        return self.set_item(STOCK_THRESHOLD_KEY, str(to_number(value)))

    def get_monthly_goal(self):
        """Monthly revenue goal, 0 when unset"""
        return to_number(self.get_item(MONTHLY_GOAL_KEY))

    def set_monthly_goal(self, value):
        return self.set_item(MONTHLY_GOAL_KEY, str(to_number(value)))
