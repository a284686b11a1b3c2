"""
Business Advisor Service
Gemini generative-language API wrapper answering questions about the shop
https://ai.google.dev/api/generate-content
"""

import json
import logging
import requests
from flask import current_app
from tostadora.utils.helpers import to_number

logger = logging.getLogger(__name__)

ADVISOR_ERROR_MESSAGE = "Error al conectar con el Asesor IA. Verifica tu API Key."

SUGGESTED_QUESTIONS = [
    "¿Cuál es mi producto más rentable?",
    "Dame una estrategia para vender más el próximo mes",
    "Analiza mis ventas y dime qué productos debería promocionar",
    "¿Cómo puedo mejorar la fidelización de mis clientes?",
]


def build_summary(state):
    """
    Compact summary of the state sent along with the question

    Only counts and totals leave the application, never the full dataset.
    """
    sales = state.get('sales') or []
    products = state.get('products') or []
    return {
        'totalSales': len(sales),
        'totalRevenue': sum(to_number(s.get('total')) for s in sales),
        'topProducts': [p.get('name') for p in products[:5]],
        'clientCount': len(state.get('clients') or []),
    }


def build_prompt(summary, question):
    return (
        "Actúa como consultor de negocios para una cafetería. "
        f"Datos: {json.dumps(summary, ensure_ascii=False)}. Pregunta: {question}"
    )


class GeminiAdvisor:
    """
    Sends the shop summary and a question to Gemini and returns plain text
    """

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, api_key=None, model=None, timeout=None):
        """
        Initialize the advisor

        Args:
            api_key: Gemini API key
            model: Model name, e.g. gemini-1.5-flash
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or current_app.config.get('GEMINI_API_KEY')
        self.model = model or current_app.config.get('GEMINI_MODEL', 'gemini-1.5-flash')
        self.timeout = timeout or current_app.config.get('ADVISOR_TIMEOUT', 30)
        self.api_url = f"{self.BASE_URL}/{self.model}:generateContent"

    def ask(self, state, question):
        """
        Ask a question about the business

        Args:
            state: Application state document
            question: Free-text question

        Returns:
            str: The advisor's answer, or a fixed error message on any failure
        """
        if not self.api_key:
            logger.error("Gemini API key not configured")
            return ADVISOR_ERROR_MESSAGE

        payload = {
            "contents": [
                {"parts": [{"text": build_prompt(build_summary(state), question)}]}
            ]
        }

        try:
            response = requests.post(
                self.api_url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout
            )

            if response.status_code != 200:
                logger.error(f"Gemini API error {response.status_code}: {response.text[:500]}")
                return ADVISOR_ERROR_MESSAGE

            result = response.json()
            parts = result['candidates'][0]['content']['parts']
            return ''.join(part.get('text', '') for part in parts)

        except requests.exceptions.Timeout:
            logger.error("Gemini API request timeout")
            return ADVISOR_ERROR_MESSAGE
        except requests.exceptions.RequestException as e:
            logger.error(f"Gemini API request failed: {e}")
            return ADVISOR_ERROR_MESSAGE
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected Gemini API response: {e}")
            return ADVISOR_ERROR_MESSAGE
