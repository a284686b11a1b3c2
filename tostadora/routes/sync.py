"""
Sync Routes
Cloud sync session management
"""

from flask import Blueprint, request, jsonify, current_app
from tostadora import get_store
from tostadora.store import SYNC_ERROR

bp = Blueprint('sync', __name__)


def _status(store):
    return {
        'syncId': store.sync_id,
        'status': store.sync_status,
        'lastSync': store.last_sync,
        'cloud': store.cloud_sync.get_sync_status(),
    }


@bp.route('/status', methods=['GET'])
def status():
    return jsonify({'success': True, **_status(get_store())})


@bp.route('/session', methods=['POST'])
def create_session():
    """Create a new sync key and upload the current data under it"""
    store = get_store()
    if not store.cloud_sync.is_configured():
        return jsonify({'success': False, 'error': 'Cloud sync is not configured'}), 400

    store.create_sync_session()
    return jsonify({'success': store.sync_status != SYNC_ERROR, **_status(store)}), 201


@bp.route('/link', methods=['POST'])
def link():
    """Link this device to an existing sync key and download its data"""
    store = get_store()
    data = request.get_json(silent=True) or {}

    try:
        pulled = store.link_sync_id(data.get('syncId'))
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    if not pulled:
        current_app.logger.warning(f"Linked to {store.sync_id} but no cloud data was downloaded")
        return jsonify({'success': False, 'error': 'No cloud data found for this sync key', **_status(store)}), 502
    return jsonify({'success': True, **_status(store)})


@bp.route('/unlink', methods=['POST'])
def unlink():
    store = get_store()
    store.unlink_sync_id()
    return jsonify({'success': True, **_status(store)})


@bp.route('/push', methods=['POST'])
def push():
    store = get_store()
    if not store.sync_id:
        return jsonify({'success': False, 'error': 'No sync key linked'}), 400

    if not store.push_to_cloud():
        return jsonify({'success': False, 'error': 'Cloud upload failed', **_status(store)}), 502
    return jsonify({'success': True, **_status(store)})


@bp.route('/pull', methods=['POST'])
def pull():
    """Replace local data with the cloud copy"""
    store = get_store()
    if not store.sync_id:
        return jsonify({'success': False, 'error': 'No sync key linked'}), 400

    if not store.pull_from_cloud():
        return jsonify({'success': False, 'error': 'Cloud download failed', **_status(store)}), 502
    return jsonify({'success': True, **_status(store)})
