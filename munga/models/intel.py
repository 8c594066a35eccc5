"""Models for research chat and structured AI screen results"""

from typing import Any, List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .session import now_ms


class Source(BaseModel):
    title: str = "Source"
    uri: str = "#"


class ResearchResult(BaseModel):
    text: str = "No response generated."
    sources: List[Source] = Field(default_factory=list)


class ChatMessage(BaseModel):
    """A single entry in the research desk conversation"""

    id: str = Field(default_factory=lambda: uuid4().hex)
    role: Literal["user", "assistant"]
    content: str
    timestamp: int = Field(default_factory=now_ms)
    sources: List[Source] = Field(default_factory=list)
    image_url: Optional[str] = None


def _flatten_item(item: Any) -> str:
    """Render a prediction/recommendation entry as text.

    The service is asked for strings but sometimes returns objects shaped
    like {scenario, grade, likelihood, reasoning}.
    """
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        scenario = item.get("scenario") or item.get("title") or item.get("name") or ""
        qualifiers = [str(item[k]) for k in ("grade", "likelihood") if item.get(k)]
        reasoning = item.get("reasoning") or item.get("description") or ""
        text = str(scenario)
        if qualifiers:
            text = f"{text} ({', '.join(qualifiers)})" if text else ", ".join(qualifiers)
        if reasoning:
            text = f"{text}: {reasoning}" if text else str(reasoning)
        return text or str(item)
    return str(item)


class PredictionReport(BaseModel):
    """Recap, predictions and viability analysis for a statistics blob"""

    model_config = ConfigDict(populate_by_name=True)

    recap: str = ""
    predictions: List[str] = Field(default_factory=list)
    viability_rating: float = Field(default=0.0, alias="viabilityRating")
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("recap", mode="before")
    @classmethod
    def _recap_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("predictions", "recommendations", mode="before")
    @classmethod
    def _flatten(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [_flatten_item(v) for v in value if v is not None]

    @field_validator("viability_rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value: Any) -> float:
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return 0.0
        if rating != rating:  # NaN
            return 0.0
        return max(0.0, min(100.0, rating))


class RoadmapPhase(BaseModel):
    name: str = ""
    tasks: List[str] = Field(default_factory=list)
    duration: str = ""

    @field_validator("name", "duration", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tasks", mode="before")
    @classmethod
    def _tasks(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [str(v) for v in value if v is not None]


class Roadmap(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    phases: List[RoadmapPhase] = Field(default_factory=list)
    risk_assessment: str = Field(default="", alias="riskAssessment")

    @field_validator("title", "risk_assessment", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("phases", mode="before")
    @classmethod
    def _phases(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [p for p in value if isinstance(p, dict)]
