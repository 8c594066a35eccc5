"""AI request facade - prompt shaping and response normalization for the screens"""

import json
import os
from typing import Any, Dict, List, Optional, Type, TypeVar

from dotenv import load_dotenv
from openai import OpenAI
from pydantic import BaseModel, ValidationError

from ..models import PredictionReport, ResearchResult, Roadmap, Source
from ..utils.config import AISettings
from ..utils.exceptions import AIServiceError
from ..utils.logger import get_logger
from . import prompts

load_dotenv()

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

NO_RESPONSE_TEXT = "No response generated."


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class AIService:
    """
    Four single-shot calls to the generative-AI service.

    - perform_research: raises AIServiceError on failure; the caller renders
      its own fallback reply
    - generate_strategic_image: "" when no image is produced
    - predict_outcomes / generate_roadmap: None when the call fails or the
      structured payload cannot be parsed

    No call is retried.
    """

    def __init__(self, settings: Optional[AISettings] = None, client: Any = None):
        self.settings = settings or AISettings()
        self._api_key = (self.settings.api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        self._client = client

        if self._client is None and self._api_key:
            try:
                self._client = OpenAI(api_key=self._api_key)
                logger.info("AI_SERVICE", action="initialized", has_api_key=True)
            except Exception as e:
                logger.warning("AI_SERVICE", action="init_failed", error=str(e))
                self._client = None
        elif self._client is None:
            logger.warning(
                "AI_SERVICE",
                action="initialized",
                has_api_key=False,
                error="OPENAI_API_KEY not found in environment",
            )

    def is_available(self) -> bool:
        """Return True if the service is configured and ready"""
        return self._client is not None

    def _require_client(self, operation: str) -> Any:
        if self._client is None:
            raise AIServiceError("AI service is not configured", operation=operation)
        return self._client

    def perform_research(self, query: str, system_instruction: str = prompts.RESEARCH_INSTRUCTION) -> ResearchResult:
        """
        Answer a free-text query with web-grounded research.

        Returns:
            ResearchResult with text and cited sources (possibly empty)

        Raises:
            AIServiceError: transport or service failure
        """
        client = self._require_client("research")
        logger.info("AI_RESEARCH", action="requesting", query_preview=_preview(query))
        try:
            response = client.chat.completions.create(
                model=self.settings.research_model,
                messages=[
                    {"role": "system", "content": system_instruction},
                    {"role": "user", "content": query},
                ],
                web_search_options={},
                timeout=self.settings.timeout_seconds,
            )
        except Exception as e:
            logger.warning("AI_RESEARCH", action="failed", error=str(e), error_type=type(e).__name__)
            raise AIServiceError(str(e), operation="research") from e

        choice = response.choices[0] if getattr(response, "choices", None) else None
        message = getattr(choice, "message", None)
        text = (getattr(message, "content", None) or "").strip() or NO_RESPONSE_TEXT
        sources = self._extract_sources(message)
        logger.info("AI_RESEARCH", action="completed", source_count=len(sources))
        return ResearchResult(text=text, sources=sources)

    @staticmethod
    def _extract_sources(message: Any) -> List[Source]:
        sources: List[Source] = []
        for annotation in getattr(message, "annotations", None) or []:
            if getattr(annotation, "type", None) != "url_citation":
                continue
            citation = getattr(annotation, "url_citation", None)
            title = getattr(citation, "title", None) or "Source"
            uri = getattr(citation, "url", None) or "#"
            sources.append(Source(title=str(title), uri=str(uri)))
        return sources

    def generate_strategic_image(self, prompt: str) -> str:
        """Return a data URL (or hosted URL) for a conceptual image, "" if none"""
        if self._client is None:
            return ""
        try:
            response = self._client.images.generate(
                model=self.settings.image_model,
                prompt=prompts.image_prompt(prompt),
                size=self.settings.image_size,
                n=1,
                timeout=self.settings.timeout_seconds,
            )
        except Exception as e:
            logger.warning("AI_IMAGE", action="failed", error=str(e), error_type=type(e).__name__)
            return ""

        for item in getattr(response, "data", None) or []:
            b64 = getattr(item, "b64_json", None)
            if b64:
                return f"data:image/png;base64,{b64}"
            url = getattr(item, "url", None)
            if url:
                return str(url)
        return ""

    def _structured(
        self,
        operation: str,
        model: str,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        strict: bool,
        result_type: Type[M],
    ) -> Optional[M]:
        if self._client is None:
            logger.warning("AI_STRUCTURED", action="unavailable", operation=operation)
            return None
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=messages,
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": operation, "schema": schema, "strict": strict},
                },
                timeout=self.settings.timeout_seconds,
            )
        except Exception as e:
            logger.warning(
                "AI_STRUCTURED",
                action="failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        choice = response.choices[0] if getattr(response, "choices", None) else None
        content = getattr(getattr(choice, "message", None), "content", None) or ""
        try:
            payload = json.loads(content)
        except (TypeError, ValueError) as e:
            logger.warning("AI_STRUCTURED", action="parse_failed", operation=operation, error=str(e))
            return None
        if not isinstance(payload, dict) or not payload:
            logger.warning("AI_STRUCTURED", action="empty_payload", operation=operation)
            return None
        try:
            return result_type.model_validate(payload)
        except ValidationError as e:
            logger.warning("AI_STRUCTURED", action="invalid_payload", operation=operation, error=str(e))
            return None

    def predict_outcomes(self, stats: str) -> Optional[PredictionReport]:
        """Recap, predictions, viability rating and recommendations for a statistics blob"""
        return self._structured(
            "prediction",
            self.settings.reasoning_model,
            [
                {"role": "system", "content": prompts.PREDICTION_INSTRUCTION},
                {"role": "user", "content": prompts.prediction_prompt(stats)},
            ],
            prompts.PREDICTION_SCHEMA,
            True,
            PredictionReport,
        )

    def generate_roadmap(self, objective: str) -> Optional[Roadmap]:
        return self._structured(
            "roadmap",
            self.settings.fast_model,
            [{"role": "user", "content": prompts.roadmap_prompt(objective)}],
            prompts.ROADMAP_SCHEMA,
            False,
            Roadmap,
        )
