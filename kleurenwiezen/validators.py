from uuid import UUID

from fastapi import HTTPException

from kleurenwiezen.repository import GameSession, Group, InMemoryRepository, Player, Round
from kleurenwiezen.round_scoring import ScoringError
from kleurenwiezen.schemas import ErrorBody, RoundInput


def error_body(exc: ScoringError) -> ErrorBody:
    return ErrorBody(code=exc.code, message=str(exc), details=exc.details() or None)


def raise_scoring_error(exc: ScoringError) -> None:
    raise HTTPException(status_code=422, detail=error_body(exc).model_dump()) from exc


def require_group(repo: InMemoryRepository, join_code: str | None) -> Group:
    if not join_code or not join_code.strip():
        raise HTTPException(status_code=401, detail="X-Join-Code header is required")
    group = repo.get_group_by_code(join_code)
    if not group:
        raise HTTPException(status_code=404, detail="Unknown join code")
    return group


def require_session(repo: InMemoryRepository, group: Group, session_id: UUID) -> GameSession:
    session = repo.get_session(session_id)
    # sessions of other groups are reported as missing
    if not session or session.group_id != group.id:
        raise HTTPException(status_code=404, detail="session not found")
    return session


def require_round(repo: InMemoryRepository, session: GameSession, round_id: UUID) -> Round:
    item = repo.get_round(round_id)
    if not item or item.session_id != session.id:
        raise HTTPException(status_code=404, detail="round not found")
    return item


def resolve_round_players(group_players: list[Player], req: RoundInput) -> list[Player]:
    if req.players is None:
        return group_players
    by_id = {p.id: p for p in group_players}
    unknown = [str(pid) for pid in req.players if pid not in by_id]
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown player id(s): {', '.join(unknown)}")
    return [by_id[pid] for pid in req.players]
