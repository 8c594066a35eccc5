"""Strategic roadmap planner"""

from typing import Optional

from ..ai import AIService
from ..models import Roadmap
from ..router import ViewMode, ViewRouter
from .base import ScreenService


class RoadmapPlanner(ScreenService):
    view = ViewMode.ROADMAP

    def __init__(self, ai: AIService, router: Optional[ViewRouter] = None):
        super().__init__(router)
        self.ai = ai

    def plan(self, objective: str) -> Optional[Roadmap]:
        objective = (objective or "").strip()
        if not objective:
            return None
        ticket = self._ticket()
        roadmap = self.ai.generate_roadmap(objective)
        if roadmap is None or not self._is_current(ticket):
            return None
        return roadmap
