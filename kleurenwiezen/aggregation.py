"""Fold rounds and score rows into per-session and group-wide statistics.

Pure functions over repository records; nothing here touches the store.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field

from kleurenwiezen.bids import BidKind
from kleurenwiezen.repository import GameSession, Round, Score


def _empty_bid_counts() -> dict[BidKind, int]:
    return {kind: 0 for kind in BidKind}


@dataclass
class SessionSummary:
    session: GameSession
    totals: dict[Hashable, int]
    round_count: int = 0
    bid_counts: dict[BidKind, int] = field(default_factory=_empty_bid_counts)


@dataclass
class GroupSummary:
    sessions: list[SessionSummary]
    totals: dict[Hashable, int]
    round_count: int = 0
    bid_counts: dict[BidKind, int] = field(default_factory=_empty_bid_counts)


@dataclass
class RoundPoints:
    round: Round
    points: dict[Hashable, int]


def summarize_sessions(
    player_ids: Sequence[Hashable],
    sessions: Sequence[GameSession],
    rounds: Iterable[Round],
    scores: Iterable[Score],
) -> GroupSummary:
    """Per-session totals, round counts and bid counts, plus their group-wide sums.

    Every player and every bid kind is present in each map, defaulting to 0.
    Rounds outside ``sessions`` and score rows whose round is unknown are skipped.
    """
    summaries = {
        s.id: SessionSummary(session=s, totals={pid: 0 for pid in player_ids}) for s in sessions
    }

    round_to_session = {}
    for r in rounds:
        summary = summaries.get(r.session_id)
        if summary is None:
            continue
        round_to_session[r.id] = r.session_id
        summary.round_count += 1
        try:
            summary.bid_counts[BidKind(r.bid)] += 1
        except ValueError:
            continue

    for row in scores:
        session_id = round_to_session.get(row.round_id)
        if session_id is None:
            continue
        totals = summaries[session_id].totals
        if row.player_id in totals:
            totals[row.player_id] += row.points or 0

    group = GroupSummary(sessions=list(summaries.values()), totals={pid: 0 for pid in player_ids})
    for summary in group.sessions:
        group.round_count += summary.round_count
        for pid in player_ids:
            group.totals[pid] += summary.totals.get(pid, 0)
        for kind in BidKind:
            group.bid_counts[kind] += summary.bid_counts.get(kind, 0)
    return group


def round_points(
    player_ids: Sequence[Hashable],
    rounds: Iterable[Round],
    scores: Iterable[Score],
) -> list[RoundPoints]:
    """One full per-player point map per round, oldest round first."""
    by_round: dict[Hashable, dict[Hashable, int]] = {}
    for row in scores:
        by_round.setdefault(row.round_id, {})[row.player_id] = row.points

    ordered = sorted(rounds, key=lambda r: r.round_no)
    return [
        RoundPoints(round=r, points={pid: by_round.get(r.id, {}).get(pid, 0) for pid in player_ids})
        for r in ordered
    ]
