"""API request/response models for the terminal backend"""

from typing import List, Optional

from pydantic import BaseModel, Field

from munga.features.predictions import ChartPoint
from munga.models import ChatMessage, FeedbackDraft, PredictionReport, ResearchResult, Roadmap
from munga.router import Screen, ViewMode


class StateResponse(BaseModel):
    authenticated: bool
    view: ViewMode
    screen: Screen
    username: Optional[str] = None
    auth_step: str
    nav_open: bool = False


class ViewRequest(BaseModel):
    mode: ViewMode


class CredentialsRequest(BaseModel):
    email: str
    username: Optional[str] = None
    register: bool = False


class CredentialsResponse(BaseModel):
    step: str
    email: str
    channel: str


class VerifyRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=16)


class SessionPublic(BaseModel):
    username: str
    email: str
    token: str


class QueryRequest(BaseModel):
    query: str


class ResearchReply(BaseModel):
    discarded: bool = False
    message: Optional[ChatMessage] = None


class HistoryResponse(BaseModel):
    messages: List[ChatMessage]


class MarketRequest(BaseModel):
    sector: str


class MarketResponse(BaseModel):
    available: bool
    intel: Optional[ResearchResult] = None
    indicators: List[str] = Field(default_factory=list)


class RoadmapRequest(BaseModel):
    objective: str


class RoadmapResponse(BaseModel):
    available: bool
    roadmap: Optional[Roadmap] = None


class PredictionRequest(BaseModel):
    stats: str


class PredictionResponse(BaseModel):
    available: bool
    report: Optional[PredictionReport] = None
    chart: List[ChartPoint] = Field(default_factory=list)
    band: Optional[str] = None


class VaultPayload(BaseModel):
    title: str = ""
    content: str = ""


class ExportRequest(BaseModel):
    format: str = Field(..., pattern="^(txt|md|pdf)$")
    title: Optional[str] = None
    content: Optional[str] = None


class DraftResponse(BaseModel):
    draft: Optional[FeedbackDraft] = None


class DraftSaveResponse(BaseModel):
    saved: bool
