"""Common plumbing for screen services"""

from typing import Optional

from ..router import ViewMode, ViewRouter, ViewTicket
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ScreenService:
    """
    A screen that issues AI requests.

    Results are bound to the view and session that were showing when the
    request was issued; a result that arrives after the operator navigated
    away or the session ended is discarded.
    """

    view: ViewMode = ViewMode.RESEARCH

    def __init__(self, router: Optional[ViewRouter] = None):
        self.router = router

    def _ticket(self) -> Optional[ViewTicket]:
        if self.router is None:
            return None
        return self.router.ticket()

    def _is_current(self, ticket: Optional[ViewTicket]) -> bool:
        if self.router is None or ticket is None:
            return True
        if self.router.is_current(ticket):
            return True
        logger.info("SCREEN", action="stale_result_discarded", view=self.view.value)
        return False
