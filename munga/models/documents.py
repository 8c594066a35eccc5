"""Vault and communication models"""

from typing import Literal

from pydantic import BaseModel, Field

FeedbackCategory = Literal["feedback", "intel", "issue"]


class VaultDocument(BaseModel):
    """Document being authored in the vault screen"""

    title: str = ""
    content: str = ""


class FeedbackDraft(BaseModel):
    subject: str = ""
    body: str = ""
    category: FeedbackCategory = "feedback"
    rating: int = Field(default=0, ge=0, le=5)

    def is_empty(self) -> bool:
        return not (self.subject or self.body)


class MailDraft(BaseModel):
    """A pre-filled compose request handed to the operator's mail client"""

    recipient: str
    subject: str
    body: str
    mailto: str
