from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from kleurenwiezen.aggregation import round_points
from kleurenwiezen.repository import GameSession, Player, Round, Score

LEADING_COLUMNS = ["date", "title", "rounds"]

# tab and newline are the field and record separators
_SEPARATORS = re.compile(r"[\t\r\n]+")


def _cell(value: object) -> str:
    return _SEPARATORS.sub(" ", str(value))


def _line(cells: Iterable[object]) -> str:
    return "\t".join(_cell(c) for c in cells) + "\n"


def _slot_columns(slot: int, players: Sequence[Player]) -> list[str]:
    prefix = f"round{slot}"
    return [f"{prefix}_bid", f"{prefix}_overtricks", f"{prefix}_multiplier"] + [
        f"{prefix}_{p.name}" for p in players
    ]


def export_sessions(
    players: Sequence[Player],
    sessions: Sequence[GameSession],
    rounds: Iterable[Round],
    scores: Iterable[Score],
) -> str:
    """One tab-separated row per session, oldest first, padded to the longest session.

    Cells are written verbatim, without quoting. Tabs and line breaks inside
    titles or player names are replaced by a space.
    """
    player_ids = [p.id for p in players]
    rounds_by_session: dict = {}
    for r in rounds:
        rounds_by_session.setdefault(r.session_id, []).append(r)
    scores = list(scores)

    ordered = sorted(sessions, key=lambda s: s.date)
    per_session = {s.id: round_points(player_ids, rounds_by_session.get(s.id, []), scores) for s in ordered}
    slots = max((len(v) for v in per_session.values()), default=0)
    width = 3 + len(players)

    header = list(LEADING_COLUMNS)
    for slot in range(1, slots + 1):
        header.extend(_slot_columns(slot, players))
    lines = [_line(header)]

    for s in ordered:
        played = per_session[s.id]
        row: list = [s.date.isoformat(), s.title, len(played)]
        for item in played:
            row.extend([item.round.bid.value, item.round.overtricks, item.round.multiplier])
            row.extend(item.points[pid] for pid in player_ids)
        row.extend([""] * (width * (slots - len(played))))
        lines.append(_line(row))
    return "".join(lines)
