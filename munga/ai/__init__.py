"""Generative-AI request facade"""

from .service import AIService, NO_RESPONSE_TEXT

__all__ = ["AIService", "NO_RESPONSE_TEXT"]
