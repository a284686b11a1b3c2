"""
Advisor Routes
Business questions answered by the Gemini advisor
"""

from flask import Blueprint, request, jsonify
from tostadora import get_store
from tostadora.services.advisor_service import GeminiAdvisor, SUGGESTED_QUESTIONS

bp = Blueprint('advisor', __name__)


@bp.route('/suggestions', methods=['GET'])
def suggestions():
    return jsonify({'success': True, 'suggestions': SUGGESTED_QUESTIONS})


@bp.route('/ask', methods=['POST'])
def ask():
    data = request.get_json(silent=True) or {}
    question = str(data.get('question') or '').strip()
    if not question:
        return jsonify({'success': False, 'error': 'Question is required'}), 400

    answer = GeminiAdvisor().ask(get_store().state, question)
    return jsonify({'success': True, 'question': question, 'answer': answer})
