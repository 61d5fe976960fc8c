from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from fastapi import FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from kleurenwiezen import ledger
from kleurenwiezen.aggregation import round_points, summarize_sessions
from kleurenwiezen.bids import BID_LABELS, BID_RULES, uses_overtricks
from kleurenwiezen.config import settings
from kleurenwiezen.export import export_sessions
from kleurenwiezen.gcs_export_store import GCSExportStore
from kleurenwiezen.repository import (
    DuplicateRoundError,
    GameSession,
    Group,
    InMemoryRepository,
    Player,
    RepositoryError,
    Round,
)
from kleurenwiezen.round_scoring import ScoringError, evaluate_round
from kleurenwiezen.schemas import (
    BidInfo,
    ChartSeries,
    ExportArchiveResponse,
    GroupCreateRequest,
    GroupResponse,
    NoteOut,
    NoteRequest,
    OverviewResponse,
    PlayerCreateRequest,
    PlayerOut,
    RecordRoundResponse,
    RoundInput,
    RoundOut,
    ScorePreviewResponse,
    SessionCreateRequest,
    SessionDetailResponse,
    SessionOut,
    SessionStats,
)
from kleurenwiezen.series import round_series, session_series
from kleurenwiezen.validators import (
    error_body,
    raise_scoring_error,
    require_group,
    require_round,
    require_session,
    resolve_round_players,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_title, version="0.1.0")
repo = InMemoryRepository(join_code_length=settings.join_code_length)
gcs_export_store = GCSExportStore()


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error("storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "storage error"})


def _player_out(player: Player) -> PlayerOut:
    return PlayerOut(id=player.id, name=player.name)


def _session_out(session: GameSession) -> SessionOut:
    return SessionOut(id=session.id, date=session.date, title=session.title)


def _round_out(item: Round, points: dict[UUID, int]) -> RoundOut:
    return RoundOut(
        id=item.id,
        round_no=item.round_no,
        bid=item.bid,
        label=BID_LABELS[item.bid],
        overtricks=item.overtricks,
        multiplier=item.multiplier,
        points=points,
    )


def _group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        owner=group.owner,
        join_code=group.join_code,
        players=[_player_out(p) for p in repo.list_players(group.id)],
    )


@app.get("/")
def root() -> dict[str, str]:
    return {
        "message": "Kleurenwiezen score tracker API",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/v1/bids", response_model=list[BidInfo])
def list_bids() -> list[BidInfo]:
    return [
        BidInfo(
            kind=rule.kind,
            label=BID_LABELS[rule.kind],
            min_winners=rule.min_winners,
            max_winners=rule.max_winners,
            bid_class=rule.bid_class,
            uses_overtricks=uses_overtricks(rule.kind),
        )
        for rule in BID_RULES.values()
    ]


@app.post("/api/v1/groups", response_model=GroupResponse, status_code=201)
def create_group(req: GroupCreateRequest) -> GroupResponse:
    group = repo.create_group(req.name, owner=req.owner)
    for name in req.players:
        repo.add_player(group.id, name)
    logger.info("created group %s with %d players", group.id, len(req.players))
    return _group_response(group)


@app.get("/api/v1/group", response_model=GroupResponse)
def get_group(x_join_code: str | None = Header(None)) -> GroupResponse:
    return _group_response(require_group(repo, x_join_code))


@app.get("/api/v1/players", response_model=list[PlayerOut])
def list_players(x_join_code: str | None = Header(None)) -> list[PlayerOut]:
    group = require_group(repo, x_join_code)
    return [_player_out(p) for p in repo.list_players(group.id)]


@app.post("/api/v1/players", response_model=PlayerOut, status_code=201)
def add_player(req: PlayerCreateRequest, x_join_code: str | None = Header(None)) -> PlayerOut:
    group = require_group(repo, x_join_code)
    return _player_out(repo.add_player(group.id, req.name))


@app.get("/api/v1/sessions", response_model=list[SessionOut])
def list_sessions(x_join_code: str | None = Header(None)) -> list[SessionOut]:
    group = require_group(repo, x_join_code)
    return [_session_out(s) for s in repo.list_sessions(group.id, descending=True)]


@app.post("/api/v1/sessions", response_model=SessionOut, status_code=201)
def create_session(req: SessionCreateRequest, x_join_code: str | None = Header(None)) -> SessionOut:
    group = require_group(repo, x_join_code)
    session_date = req.date or date.today()
    title = (req.title or "").strip() or f"Avond {session_date.isoformat()}"
    return _session_out(repo.create_session(group.id, session_date, title))


@app.get("/api/v1/sessions/{session_id}", response_model=SessionDetailResponse)
def get_session(session_id: UUID, x_join_code: str | None = Header(None)) -> SessionDetailResponse:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    players = repo.list_players(group.id)
    rounds = repo.list_rounds([session.id])
    played = round_points([p.id for p in players], rounds, repo.list_scores(r.id for r in rounds))
    totals = {p.id: sum(item.points[p.id] for item in played) for p in players}
    return SessionDetailResponse(
        session=_session_out(session),
        players=[_player_out(p) for p in players],
        rounds=[_round_out(item.round, item.points) for item in played],
        totals=totals,
        next_round_no=ledger.next_round_no(repo, session.id),
    )


@app.post("/api/v1/score/preview", response_model=ScorePreviewResponse)
def preview_score(req: RoundInput, x_join_code: str | None = Header(None)) -> ScorePreviewResponse:
    group = require_group(repo, x_join_code)
    players = resolve_round_players(repo.list_players(group.id), req)
    multiplier = req.effective_multiplier()
    outcome = evaluate_round([p.id for p in players], req.bid, req.winners, req.overtricks, multiplier)
    if not outcome.ok:
        logger.debug("preview rejected: %s", outcome.error)
        return ScorePreviewResponse(status="invalid", multiplier=multiplier, error=error_body(outcome.error))
    return ScorePreviewResponse(status="ok", multiplier=multiplier, points=outcome.points)


@app.post("/api/v1/sessions/{session_id}/rounds", response_model=RecordRoundResponse, status_code=201)
def record_round(session_id: UUID, req: RoundInput, x_join_code: str | None = Header(None)) -> RecordRoundResponse:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    players = resolve_round_players(repo.list_players(group.id), req)
    try:
        recorded = ledger.record_round(repo, session, players, req)
    except ScoringError as exc:
        raise_scoring_error(exc)
    except DuplicateRoundError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return RecordRoundResponse(status="ok", round=_round_out(recorded.round, recorded.points))


@app.delete("/api/v1/sessions/{session_id}/rounds/{round_id}", status_code=204)
def delete_round(session_id: UUID, round_id: UUID, x_join_code: str | None = Header(None)) -> Response:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    item = require_round(repo, session, round_id)
    ledger.delete_round(repo, item.id)
    return Response(status_code=204)


@app.get("/api/v1/sessions/{session_id}/note", response_model=NoteOut | None)
def get_note(session_id: UUID, x_join_code: str | None = Header(None)) -> NoteOut | None:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    note = repo.get_note(session.id)
    if not note:
        return None
    return NoteOut(id=note.id, body=note.body, created_at=note.created_at)


@app.put("/api/v1/sessions/{session_id}/note", response_model=NoteOut)
def save_note(session_id: UUID, req: NoteRequest, x_join_code: str | None = Header(None)) -> NoteOut:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    try:
        note = ledger.save_note(repo, session.id, req.body)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return NoteOut(id=note.id, body=note.body, created_at=note.created_at)


@app.delete("/api/v1/sessions/{session_id}/note", status_code=204)
def delete_note(session_id: UUID, x_join_code: str | None = Header(None)) -> Response:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    if not ledger.delete_note(repo, session.id):
        raise HTTPException(status_code=404, detail="note not found")
    return Response(status_code=204)


@app.get("/api/v1/sessions/{session_id}/series", response_model=ChartSeries)
def get_session_series(session_id: UUID, x_join_code: str | None = Header(None)) -> ChartSeries:
    group = require_group(repo, x_join_code)
    session = require_session(repo, group, session_id)
    players = repo.list_players(group.id)
    rounds = repo.list_rounds([session.id])
    played = round_points([p.id for p in players], rounds, repo.list_scores(r.id for r in rounds))
    return round_series(players, played)


@app.get("/api/v1/overview", response_model=OverviewResponse)
def overview(x_join_code: str | None = Header(None)) -> OverviewResponse:
    group = require_group(repo, x_join_code)
    players = repo.list_players(group.id)
    sessions = repo.list_sessions(group.id, descending=True)
    rounds = repo.list_rounds(s.id for s in sessions)
    scores = repo.list_scores(r.id for r in rounds)
    summary = summarize_sessions([p.id for p in players], sessions, rounds, scores)
    return OverviewResponse(
        players=[_player_out(p) for p in players],
        sessions=[
            SessionStats(
                session=_session_out(s.session),
                totals=s.totals,
                round_count=s.round_count,
                bid_counts=s.bid_counts,
            )
            for s in summary.sessions
        ],
        totals=summary.totals,
        round_count=summary.round_count,
        bid_counts=summary.bid_counts,
        series=session_series(players, summary),
    )


def _export_text(group: Group) -> str:
    players = repo.list_players(group.id)
    sessions = repo.list_sessions(group.id, descending=False)
    rounds = repo.list_rounds(s.id for s in sessions)
    return export_sessions(players, sessions, rounds, repo.list_scores(r.id for r in rounds))


@app.get("/api/v1/export")
def export(x_join_code: str | None = Header(None)) -> Response:
    group = require_group(repo, x_join_code)
    if not repo.list_sessions(group.id):
        raise HTTPException(status_code=404, detail="no sessions to export")
    return Response(
        content=_export_text(group),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{settings.export_filename}"'},
    )


@app.post("/api/v1/export/archive", response_model=ExportArchiveResponse)
def archive_export(x_join_code: str | None = Header(None)) -> ExportArchiveResponse:
    group = require_group(repo, x_join_code)
    try:
        storage_info = gcs_export_store.save(group.join_code, _export_text(group))
    except ValueError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Failed to archive export to GCS: {exc}") from exc
    return ExportArchiveResponse(status="ok", storage=storage_info)
