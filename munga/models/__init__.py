"""Data models for Munga"""

from .session import Session, RegisteredUser, PendingVerification, now_ms
from .intel import ChatMessage, Source, ResearchResult, PredictionReport, Roadmap, RoadmapPhase
from .documents import VaultDocument, FeedbackDraft, MailDraft

__all__ = [
    "Session",
    "RegisteredUser",
    "PendingVerification",
    "now_ms",
    "ChatMessage",
    "Source",
    "ResearchResult",
    "PredictionReport",
    "Roadmap",
    "RoadmapPhase",
    "VaultDocument",
    "FeedbackDraft",
    "MailDraft",
]
