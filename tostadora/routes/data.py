"""
Data Routes
Export/import, reset, save lock, dashboard settings and backups
"""

from io import BytesIO
from flask import Blueprint, request, jsonify, send_file, current_app
from tostadora import get_store, get_backup_service
from tostadora.store import ImportDataError, ConfirmationRequired
from tostadora.domain import COLLECTIONS
from tostadora.utils.helpers import to_number

bp = Blueprint('data', __name__)


@bp.route('/status', methods=['GET'])
def status():
    """Size of the stored data and record counts"""
    store = get_store()
    return jsonify({
        'success': True,
        'dataSize': store.data_size,
        'isSaveLocked': store.is_save_locked,
        'counts': {name: len(store.collection(name)) for name in COLLECTIONS},
    })


@bp.route('/export', methods=['GET'])
def export():
    """Download the full state as a JSON file"""
    store = get_store()
    output = BytesIO(store.export_data().encode('utf-8'))
    return send_file(
        output,
        mimetype='application/json',
        as_attachment=True,
        download_name=store.export_filename()
    )


@bp.route('/import', methods=['POST'])
def import_data():
    """
    Replace the state with an exported document

    Accepts an uploaded file (field "file") or the document as the request body.
    """
    upload = request.files.get('file')
    raw = upload.read() if upload else request.get_data()

    try:
        get_store().import_data(raw.decode('utf-8'))
    except UnicodeDecodeError:
        current_app.logger.warning("Import rejected: file is not UTF-8 text")
        return jsonify({'success': False, 'error': 'Error importing file: not UTF-8 text'}), 400
    except ImportDataError as e:
        current_app.logger.warning(f"Import rejected: {e}")
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({'success': True, 'message': 'Data imported successfully'})


@bp.route('/reset', methods=['POST'])
def reset():
    """Erase all data; requires {"confirm": true}"""
    data = request.get_json(silent=True) or {}
    try:
        get_store().reset_data(confirm=data.get('confirm') is True)
    except ConfirmationRequired as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({'success': True, 'message': 'All data has been reset'})


@bp.route('/save-lock', methods=['POST'])
def toggle_save_lock():
    locked = get_store().toggle_save_lock()
    return jsonify({'success': True, 'isSaveLocked': locked})


@bp.route('/settings', methods=['GET'])
def get_settings():
    local_storage = get_store().local_storage
    return jsonify({
        'success': True,
        'stockThreshold': local_storage.get_stock_threshold(current_app.config.get('LOW_STOCK_THRESHOLD', 10)),
        'monthlyGoal': local_storage.get_monthly_goal(),
    })


@bp.route('/settings', methods=['PUT'])
def update_settings():
    """Update the low-stock threshold and/or the monthly revenue goal"""
    data = request.get_json(silent=True) or {}
    local_storage = get_store().local_storage

    for key in ('stockThreshold', 'monthlyGoal'):
        if key in data and to_number(data[key]) < 0:
            return jsonify({'success': False, 'error': f'{key} cannot be negative'}), 400

    if 'stockThreshold' in data:
        local_storage.set_stock_threshold(data['stockThreshold'])
    if 'monthlyGoal' in data:
        local_storage.set_monthly_goal(data['monthlyGoal'])

    return get_settings()


@bp.route('/backups', methods=['GET'])
def list_backups():
    return jsonify({'success': True, 'backups': get_backup_service().list_backups()})


@bp.route('/backups', methods=['POST'])
def create_backup():
    backup_path = get_backup_service().backup_data()
    if not backup_path:
        return jsonify({'success': False, 'error': 'Backup failed'}), 500
    return jsonify({'success': True, 'message': 'Backup created successfully'}), 201


@bp.route('/backups/<filename>/restore', methods=['POST'])
def restore_backup(filename):
    try:
        restored = get_backup_service().restore_backup(filename)
    except ImportDataError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    if not restored:
        return jsonify({'success': False, 'error': 'Backup not found'}), 404
    return jsonify({'success': True, 'message': 'Data restored successfully'})
