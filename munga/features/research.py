"""Research desk: the persisted analyst chat"""

import threading
from typing import List, Optional

from ..ai import AIService
from ..ai.prompts import RESEARCH_INSTRUCTION
from ..models import ChatMessage
from ..router import ViewMode, ViewRouter
from ..stores import RecordStore
from ..utils.exceptions import AIServiceError
from ..utils.logger import get_logger
from .base import ScreenService

logger = get_logger(__name__)

WELCOME_MESSAGE = (
    "System Initialized. I am INTELIGENT MUNGA. Tactical research link established. "
    "Input intelligence objectives for global synthesis."
)
ERROR_REPLY = ">>> ERROR: COMMUNICATION LINK BREACHED. RETRYING CORE PROTOCOL..."
# queries longer than this also get a conceptual image
IMAGE_QUERY_MIN_LENGTH = 10


class ResearchDesk(ScreenService):
    view = ViewMode.RESEARCH

    def __init__(
        self,
        ai: AIService,
        history_store: RecordStore[List[ChatMessage]],
        router: Optional[ViewRouter] = None,
    ):
        super().__init__(router)
        self.ai = ai
        self.history_store = history_store
        self._lock = threading.RLock()

    def history(self) -> List[ChatMessage]:
        """Conversation so far, seeded with the welcome message when empty"""
        with self._lock:
            messages = self.history_store.get()
            if not messages:
                messages = [ChatMessage(role="assistant", content=WELCOME_MESSAGE)]
                self.history_store.set(messages)
            return messages

    def _append(self, message: ChatMessage) -> None:
        with self._lock:
            messages = self.history()
            messages.append(message)
            self.history_store.set(messages)

    def send(self, query: str) -> Optional[ChatMessage]:
        """
        Post an operator query and return the assistant reply.

        Blank queries are ignored (None). A service failure becomes the fixed
        error reply. Returns None when the reply is discarded because the
        operator left the screen or the session ended meanwhile.
        """
        text = (query or "").strip()
        if not text:
            return None

        ticket = self._ticket()
        self._append(ChatMessage(role="user", content=query))

        try:
            research = self.ai.perform_research(query, RESEARCH_INSTRUCTION)
            image_url = ""
            if len(query) > IMAGE_QUERY_MIN_LENGTH:
                image_url = self.ai.generate_strategic_image(query)
            reply = ChatMessage(
                role="assistant",
                content=research.text,
                sources=research.sources,
                image_url=image_url or None,
            )
        except AIServiceError as e:
            logger.warning("RESEARCH_DESK", action="fallback_reply", error=str(e))
            reply = ChatMessage(role="assistant", content=ERROR_REPLY)

        if not self._is_current(ticket):
            return None
        self._append(reply)
        return reply
