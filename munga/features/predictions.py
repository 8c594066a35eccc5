"""Strategy predictions: structured outcome analysis plus chart series"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..ai import AIService
from ..models import PredictionReport
from ..router import ViewMode, ViewRouter
from .base import ScreenService

RELEVANCE_BASELINE = 88.0


class ChartPoint(BaseModel):
    name: str
    value: float


class PredictionAnalysis(BaseModel):
    report: PredictionReport
    chart: List[ChartPoint] = Field(default_factory=list)
    band: str = "low"


def viability_band(rating: float) -> str:
    if rating > 70:
        return "high"
    if rating > 40:
        return "medium"
    return "low"


def chart_series(rating: float) -> List[ChartPoint]:
    """Bar chart derived from the viability rating"""
    return [
        ChartPoint(name="VIABILITY", value=rating),
        ChartPoint(name="PROXIMITY", value=min(100.0, 100.0 - rating / 2)),
        ChartPoint(name="ENTROPY", value=max(10.0, 80.0 - rating)),
        ChartPoint(name="RELEVANCE", value=RELEVANCE_BASELINE),
    ]


class StrategyAnalyst(ScreenService):
    view = ViewMode.ANALYTICS

    def __init__(self, ai: AIService, router: Optional[ViewRouter] = None):
        super().__init__(router)
        self.ai = ai

    def analyze(self, stats: str) -> Optional[PredictionAnalysis]:
        """None means "no prediction available" """
        if not (stats or "").strip():
            return None
        ticket = self._ticket()
        report = self.ai.predict_outcomes(stats)
        if report is None or not self._is_current(ticket):
            return None
        rating = report.viability_rating
        return PredictionAnalysis(report=report, chart=chart_series(rating), band=viability_band(rating))
