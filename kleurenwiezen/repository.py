from __future__ import annotations

import secrets
import string
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from threading import Lock
from uuid import UUID, uuid4

from kleurenwiezen.bids import BidKind

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


class RepositoryError(Exception):
    pass


class NotFoundError(RepositoryError):
    pass


class DuplicateRoundError(RepositoryError):
    def __init__(self, session_id: UUID, round_no: int) -> None:
        self.session_id = session_id
        self.round_no = round_no
        super().__init__(f"Round {round_no} already exists in session {session_id}")


class IntegrityError(RepositoryError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Group:
    id: UUID
    join_code: str
    name: str
    owner: str | None = None


@dataclass
class Player:
    id: UUID
    group_id: UUID
    name: str


@dataclass
class GameSession:
    id: UUID
    group_id: UUID
    date: date
    title: str


@dataclass
class Round:
    id: UUID
    session_id: UUID
    round_no: int
    bid: BidKind
    overtricks: int
    multiplier: int


@dataclass
class Score:
    round_id: UUID
    player_id: UUID
    points: int


@dataclass
class SessionNote:
    id: UUID
    session_id: UUID
    body: str
    created_at: datetime = field(default_factory=_utcnow)


class InMemoryRepository:
    """Relational-style store for groups, players, sessions, rounds, scores and notes.

    Every public method holds the same lock, so each call is atomic on its own.
    Multi-step writes (a round plus its scores) are coordinated by the caller.
    """

    def __init__(self, join_code_length: int = 6) -> None:
        self._join_code_length = join_code_length
        self._groups: dict[UUID, Group] = {}
        self._players: dict[UUID, Player] = {}
        self._sessions: dict[UUID, GameSession] = {}
        self._rounds: dict[UUID, Round] = {}
        self._scores: list[Score] = []
        self._notes: dict[UUID, SessionNote] = {}
        self._lock = Lock()

    def _new_join_code(self) -> str:
        taken = {g.join_code for g in self._groups.values()}
        while True:
            code = "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(self._join_code_length))
            if code not in taken:
                return code

    # groups

    def create_group(self, name: str, owner: str | None = None) -> Group:
        with self._lock:
            group = Group(id=uuid4(), join_code=self._new_join_code(), name=name, owner=owner)
            self._groups[group.id] = group
            return group

    def get_group(self, group_id: UUID) -> Group | None:
        with self._lock:
            return self._groups.get(group_id)

    def get_group_by_code(self, join_code: str) -> Group | None:
        code = join_code.strip().upper()
        with self._lock:
            return next((g for g in self._groups.values() if g.join_code == code), None)

    # players

    def add_player(self, group_id: UUID, name: str) -> Player:
        with self._lock:
            if group_id not in self._groups:
                raise NotFoundError(f"group {group_id} not found")
            player = Player(id=uuid4(), group_id=group_id, name=name)
            self._players[player.id] = player
            return player

    def list_players(self, group_id: UUID) -> list[Player]:
        with self._lock:
            players = [p for p in self._players.values() if p.group_id == group_id]
        return sorted(players, key=lambda p: p.name)

    # sessions

    def create_session(self, group_id: UUID, session_date: date, title: str) -> GameSession:
        with self._lock:
            if group_id not in self._groups:
                raise NotFoundError(f"group {group_id} not found")
            session = GameSession(id=uuid4(), group_id=group_id, date=session_date, title=title)
            self._sessions[session.id] = session
            return session

    def get_session(self, session_id: UUID) -> GameSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self, group_id: UUID, descending: bool = True) -> list[GameSession]:
        with self._lock:
            sessions = [s for s in self._sessions.values() if s.group_id == group_id]
        return sorted(sessions, key=lambda s: s.date, reverse=descending)

    # rounds

    def insert_round(
        self,
        session_id: UUID,
        round_no: int,
        bid: BidKind,
        overtricks: int,
        multiplier: int,
    ) -> Round:
        with self._lock:
            if session_id not in self._sessions:
                raise NotFoundError(f"session {session_id} not found")
            if any(r.session_id == session_id and r.round_no == round_no for r in self._rounds.values()):
                raise DuplicateRoundError(session_id, round_no)
            item = Round(
                id=uuid4(),
                session_id=session_id,
                round_no=round_no,
                bid=bid,
                overtricks=overtricks,
                multiplier=multiplier,
            )
            self._rounds[item.id] = item
            return item

    def get_round(self, round_id: UUID) -> Round | None:
        with self._lock:
            return self._rounds.get(round_id)

    def list_rounds(self, session_ids: Iterable[UUID]) -> list[Round]:
        wanted = set(session_ids)
        with self._lock:
            rounds = [r for r in self._rounds.values() if r.session_id in wanted]
        return sorted(rounds, key=lambda r: r.round_no)

    def delete_round(self, round_id: UUID) -> bool:
        with self._lock:
            if any(s.round_id == round_id for s in self._scores):
                raise IntegrityError(f"round {round_id} still has scores")
            return self._rounds.pop(round_id, None) is not None

    # scores

    def insert_scores(self, rows: Iterable[Score]) -> list[Score]:
        rows = list(rows)
        with self._lock:
            for row in rows:
                if row.round_id not in self._rounds:
                    raise NotFoundError(f"round {row.round_id} not found")
                if row.player_id not in self._players:
                    raise NotFoundError(f"player {row.player_id} not found")
            self._scores.extend(rows)
            return rows

    def list_scores(self, round_ids: Iterable[UUID]) -> list[Score]:
        wanted = set(round_ids)
        with self._lock:
            return [s for s in self._scores if s.round_id in wanted]

    def delete_scores(self, round_id: UUID) -> int:
        with self._lock:
            kept = [s for s in self._scores if s.round_id != round_id]
            removed = len(self._scores) - len(kept)
            self._scores = kept
            return removed

    # notes

    def get_note(self, session_id: UUID) -> SessionNote | None:
        with self._lock:
            notes = [n for n in self._notes.values() if n.session_id == session_id]
        return max(notes, key=lambda n: n.created_at, default=None)

    def insert_note(self, session_id: UUID, body: str) -> SessionNote:
        with self._lock:
            if session_id not in self._sessions:
                raise NotFoundError(f"session {session_id} not found")
            note = SessionNote(id=uuid4(), session_id=session_id, body=body)
            self._notes[note.id] = note
            return note

    def update_note(self, note_id: UUID, body: str) -> SessionNote:
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                raise NotFoundError(f"note {note_id} not found")
            note.body = body
            return note

    def delete_note(self, note_id: UUID) -> bool:
        with self._lock:
            return self._notes.pop(note_id, None) is not None
