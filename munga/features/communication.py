"""
Communication screen: feedback drafts and mail compose.

The system never sends feedback itself. `compose` builds a mail request
(recipient, subject, body and a mailto: URL) for the operator's own mail
client and clears the saved draft.
"""

from typing import Optional
from urllib.parse import quote

from ..models import FeedbackDraft, MailDraft
from ..stores import RecordStore
from ..utils.exceptions import IncompleteFormError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def format_mail_subject(draft: FeedbackDraft) -> str:
    return f"[MUNGA INTEL - {draft.category.upper()}] {draft.subject}"


def format_mail_body(draft: FeedbackDraft) -> str:
    return (
        "--- TACTICAL INTEL PACKET ---\n"
        f"CATEGORY: {draft.category}\n"
        f"RATING: {draft.rating}/5\n\n"
        f"MESSAGE BODY:\n{draft.body}\n\n"
        "--- END OF PACKET ---"
    )


class CommunicationDesk:
    def __init__(self, draft_store: RecordStore[FeedbackDraft], recipient: str):
        self.draft_store = draft_store
        self.recipient = recipient

    def load_draft(self) -> Optional[FeedbackDraft]:
        """Saved draft, or None when there is none (or it cannot be read)"""
        return self.draft_store.get()

    def autosave(self, draft: FeedbackDraft) -> bool:
        """Persist the draft if it has a subject or body. Returns True if saved."""
        if draft.is_empty():
            return False
        self.draft_store.set(draft)
        logger.debug("COMMUNICATION", action="draft_saved", category=draft.category)
        return True

    def compose(self, draft: FeedbackDraft) -> MailDraft:
        """Build the compose request and clear the saved draft"""
        if not draft.subject.strip():
            raise IncompleteFormError("subject")
        if not draft.body.strip():
            raise IncompleteFormError("body")

        subject = format_mail_subject(draft)
        body = format_mail_body(draft)
        mailto = f"mailto:{self.recipient}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"
        self.draft_store.clear()
        logger.info("COMMUNICATION", action="compose_ready", category=draft.category, rating=draft.rating)
        return MailDraft(recipient=self.recipient, subject=subject, body=body, mailto=mailto)
