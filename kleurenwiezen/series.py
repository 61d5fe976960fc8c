from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping, Sequence

from kleurenwiezen.aggregation import GroupSummary, RoundPoints
from kleurenwiezen.repository import Player
from kleurenwiezen.schemas import ChartSeries, PlayerSeries


def cumulative_series(
    player_ids: Sequence[Hashable],
    steps: Iterable[Mapping[Hashable, int]],
) -> dict[Hashable, list[int]]:
    """Running per-player sums, one value per step. Absent players add 0 for that step."""
    running = {pid: 0 for pid in player_ids}
    values: dict[Hashable, list[int]] = {pid: [] for pid in player_ids}
    for step in steps:
        for pid in player_ids:
            running[pid] += step.get(pid, 0) or 0
            values[pid].append(running[pid])
    return values


def _chart(players: Sequence[Player], labels: list[str], steps: list[Mapping[Hashable, int]]) -> ChartSeries:
    values = cumulative_series([p.id for p in players], steps)
    return ChartSeries(
        labels=labels,
        series=[PlayerSeries(player_id=p.id, name=p.name, values=values[p.id]) for p in players],
    )


def session_series(players: Sequence[Player], summary: GroupSummary) -> ChartSeries:
    # sorted() is stable, so sessions on the same date keep their supplied order
    ordered = sorted(summary.sessions, key=lambda s: s.session.date)
    return _chart(
        players,
        [s.session.date.isoformat() for s in ordered],
        [s.totals for s in ordered],
    )


def round_series(players: Sequence[Player], rounds: Sequence[RoundPoints]) -> ChartSeries:
    ordered = sorted(rounds, key=lambda r: r.round.round_no)
    return _chart(
        players,
        [str(r.round.round_no) for r in ordered],
        [r.points for r in ordered],
    )
