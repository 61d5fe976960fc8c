"""Write paths that span several repository calls.

A round and its four score rows are stored together: when the score insert
fails the round is deleted again, so no round is left without scores.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from uuid import UUID

from kleurenwiezen.bids import stored_overtricks
from kleurenwiezen.repository import GameSession, InMemoryRepository, Player, Round, Score, SessionNote
from kleurenwiezen.round_scoring import score_round
from kleurenwiezen.schemas import RoundInput

logger = logging.getLogger(__name__)


@dataclass
class StoredRound:
    round: Round
    points: dict[UUID, int]


def next_round_no(repo: InMemoryRepository, session_id: UUID) -> int:
    rounds = repo.list_rounds([session_id])
    return rounds[-1].round_no + 1 if rounds else 1


def record_round(
    repo: InMemoryRepository,
    session: GameSession,
    players: Sequence[Player],
    req: RoundInput,
) -> StoredRound:
    player_ids = [p.id for p in players]
    multiplier = req.effective_multiplier()
    points = score_round(player_ids, req.bid, req.winners, req.overtricks, multiplier)

    item = repo.insert_round(
        session_id=session.id,
        round_no=next_round_no(repo, session.id),
        bid=req.bid,
        overtricks=stored_overtricks(req.bid, req.overtricks),
        multiplier=multiplier,
    )
    try:
        repo.insert_scores(Score(round_id=item.id, player_id=pid, points=pts) for pid, pts in points.items())
    except Exception:
        logger.warning("score insert failed for round %s, deleting round", item.id)
        repo.delete_round(item.id)
        raise

    logger.info(
        "recorded round %s #%d in session %s: %s x%d",
        item.id,
        item.round_no,
        session.id,
        item.bid.value,
        multiplier,
    )
    return StoredRound(round=item, points=points)


def delete_round(repo: InMemoryRepository, round_id: UUID) -> bool:
    removed = repo.delete_scores(round_id)
    deleted = repo.delete_round(round_id)
    if deleted:
        logger.info("deleted round %s with %d score rows", round_id, removed)
    return deleted


def save_note(repo: InMemoryRepository, session_id: UUID, body: str) -> SessionNote:
    """Update the session's note in place, or create it on first save."""
    text = body.strip()
    if not text:
        raise ValueError("note body is empty")
    existing = repo.get_note(session_id)
    if existing:
        return repo.update_note(existing.id, text)
    return repo.insert_note(session_id, text)


def delete_note(repo: InMemoryRepository, session_id: UUID) -> bool:
    existing = repo.get_note(session_id)
    if existing is None:
        return False
    return repo.delete_note(existing.id)
