"""
REST API for the analyst screens.

Prefix: /api

Every screen route selects its view before doing any work, so a result that
comes back after the operator navigated away (or after the session ended)
is reported as discarded instead of being shown.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse

from munga.export import MEDIA_TYPES
from munga.features.market import MARKET_INDICATORS
from munga.models import FeedbackDraft, Session
from munga.router import ViewMode
from munga.utils.logger import get_logger
from .deps import get_munga, optional_session, require_session
from .models import (
    DraftResponse,
    DraftSaveResponse,
    ExportRequest,
    HistoryResponse,
    MarketRequest,
    MarketResponse,
    PredictionRequest,
    PredictionResponse,
    QueryRequest,
    ResearchReply,
    RoadmapRequest,
    RoadmapResponse,
    StateResponse,
    VaultPayload,
    ViewRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _state(request: Request, session: Optional[Session]) -> StateResponse:
    munga = get_munga(request)
    return StateResponse(
        authenticated=session is not None,
        view=munga.router.mode,
        screen=munga.screen(),
        username=session.username if session else None,
        auth_step=munga.auth_flow.step.value,
        nav_open=munga.router.nav_open,
    )


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Liveness probe"""
    munga = get_munga(request)
    return {
        "status": "ok",
        "version": munga.settings.app.version,
        "ai_available": munga.ai.is_available(),
        "watchdog": munga.watchdog.running,
    }


@router.get("/state", response_model=StateResponse)
async def get_state(request: Request, session: Optional[Session] = Depends(optional_session)) -> StateResponse:
    return _state(request, session)


@router.post("/view", response_model=StateResponse)
async def select_view(
    request: Request,
    payload: ViewRequest,
    session: Optional[Session] = Depends(optional_session),
) -> StateResponse:
    """Select a view. Without a session every view except landing resolves to the auth screen."""
    get_munga(request).select_view(payload.mode)
    return _state(request, session)


@router.post("/nav/toggle", response_model=StateResponse)
async def toggle_nav(request: Request, session: Session = Depends(require_session)) -> StateResponse:
    get_munga(request).router.toggle_nav()
    return _state(request, session)


@router.post("/activity")
async def record_activity(session: Session = Depends(require_session)) -> Dict[str, str]:
    """Explicit keep-alive for client-side input; the dependency records the activity"""
    return {"status": "ok"}


# --- Research desk ---


@router.get("/research/history", response_model=HistoryResponse)
async def research_history(request: Request, session: Session = Depends(require_session)) -> HistoryResponse:
    munga = get_munga(request)
    return HistoryResponse(messages=munga.research.history())


@router.post("/research", response_model=ResearchReply)
async def research(
    request: Request,
    payload: QueryRequest,
    session: Session = Depends(require_session),
) -> ResearchReply:
    munga = get_munga(request)
    munga.select_view(ViewMode.RESEARCH)
    if not payload.query.strip():
        return ResearchReply()
    message = await run_in_threadpool(munga.research.send, payload.query)
    return ResearchReply(discarded=message is None, message=message)


# --- Market, roadmap, predictions ---


@router.post("/market", response_model=MarketResponse)
async def market_scan(
    request: Request,
    payload: MarketRequest,
    session: Session = Depends(require_session),
) -> MarketResponse:
    munga = get_munga(request)
    munga.select_view(ViewMode.MARKET)
    intel = await run_in_threadpool(munga.market.scan, payload.sector)
    return MarketResponse(available=intel is not None, intel=intel, indicators=list(MARKET_INDICATORS))


@router.post("/roadmap", response_model=RoadmapResponse)
async def roadmap(
    request: Request,
    payload: RoadmapRequest,
    session: Session = Depends(require_session),
) -> RoadmapResponse:
    munga = get_munga(request)
    munga.select_view(ViewMode.ROADMAP)
    plan = await run_in_threadpool(munga.roadmap.plan, payload.objective)
    return RoadmapResponse(available=plan is not None, roadmap=plan)


@router.post("/predictions", response_model=PredictionResponse)
async def predictions(
    request: Request,
    payload: PredictionRequest,
    session: Session = Depends(require_session),
) -> PredictionResponse:
    munga = get_munga(request)
    munga.select_view(ViewMode.ANALYTICS)
    analysis = await run_in_threadpool(munga.predictions.analyze, payload.stats)
    if analysis is None:
        return PredictionResponse(available=False)
    return PredictionResponse(
        available=True,
        report=analysis.report,
        chart=analysis.chart,
        band=analysis.band,
    )


# --- Document vault ---


@router.get("/vault", response_model=VaultPayload)
async def get_vault(request: Request, session: Session = Depends(require_session)) -> VaultPayload:
    document = get_munga(request).vault.load()
    return VaultPayload(title=document.title, content=document.content)


@router.put("/vault", response_model=VaultPayload)
async def save_vault(
    request: Request,
    payload: VaultPayload,
    session: Session = Depends(require_session),
) -> VaultPayload:
    document = get_munga(request).vault.save(payload.title, payload.content)
    return VaultPayload(title=document.title, content=document.content)


@router.post("/vault/export")
async def export_vault(
    request: Request,
    payload: ExportRequest,
    session: Session = Depends(require_session),
) -> FileResponse:
    """Render the vault document (or the posted title/content) and return it as a download"""
    munga = get_munga(request)
    path = await run_in_threadpool(munga.vault.export, payload.format, payload.title, payload.content)
    logger.info("VAULT_EXPORT", format=payload.format, file=path.name)
    return FileResponse(path, media_type=MEDIA_TYPES[payload.format], filename=path.name)


# --- Communication ---


@router.get("/feedback/draft", response_model=DraftResponse)
async def get_draft(request: Request, session: Session = Depends(require_session)) -> DraftResponse:
    return DraftResponse(draft=get_munga(request).communication.load_draft())


@router.put("/feedback/draft", response_model=DraftSaveResponse)
async def save_draft(
    request: Request,
    payload: FeedbackDraft,
    session: Session = Depends(require_session),
) -> DraftSaveResponse:
    return DraftSaveResponse(saved=get_munga(request).communication.autosave(payload))


@router.post("/feedback/compose")
async def compose_feedback(
    request: Request,
    payload: FeedbackDraft,
    session: Session = Depends(require_session),
) -> Dict[str, Any]:
    """Build the mail compose request; the operator's mail client does the sending"""
    mail = get_munga(request).communication.compose(payload)
    return mail.model_dump()
