"""Screen services"""

from .research import ResearchDesk, WELCOME_MESSAGE, ERROR_REPLY
from .market import MarketScanner
from .roadmap import RoadmapPlanner
from .predictions import StrategyAnalyst, PredictionAnalysis, chart_series, viability_band
from .vault import DocumentVault
from .communication import CommunicationDesk

__all__ = [
    "ResearchDesk",
    "WELCOME_MESSAGE",
    "ERROR_REPLY",
    "MarketScanner",
    "RoadmapPlanner",
    "StrategyAnalyst",
    "PredictionAnalysis",
    "chart_series",
    "viability_band",
    "DocumentVault",
    "CommunicationDesk",
]
