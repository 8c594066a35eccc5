"""Market intelligence scan"""

from typing import Optional

from ..ai import AIService
from ..ai.prompts import MARKET_INSTRUCTION, market_scan_prompt
from ..models import ResearchResult
from ..router import ViewMode, ViewRouter
from ..utils.exceptions import AIServiceError
from ..utils.logger import get_logger
from .base import ScreenService

logger = get_logger(__name__)

# Indicator labels shown beside the scan report
MARKET_INDICATORS = ("Market Cap Drift", "Investment Velocity", "Entry Barriers")


class MarketScanner(ScreenService):
    view = ViewMode.MARKET

    def __init__(self, ai: AIService, router: Optional[ViewRouter] = None):
        super().__init__(router)
        self.ai = ai

    def scan(self, sector: str) -> Optional[ResearchResult]:
        """Research report for a sector, or None if blank, failed or stale"""
        sector = (sector or "").strip()
        if not sector:
            return None
        ticket = self._ticket()
        try:
            result = self.ai.perform_research(market_scan_prompt(sector), MARKET_INSTRUCTION)
        except AIServiceError as e:
            logger.warning("MARKET_SCAN", action="failed", sector=sector, error=str(e))
            return None
        if not self._is_current(ticket):
            return None
        return result
