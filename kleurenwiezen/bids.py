from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class BidKind(str, Enum):
    SINGLE = "SINGLE"
    DOUBLE = "DOUBLE"
    TREBLE = "TREBLE"
    ABUNDANCE = "ABUNDANCE"
    SMALL_MISERY = "SMALL_MISERY"
    LARGE_MISERY = "LARGE_MISERY"
    SOLO_SLAM = "SOLO_SLAM"


BidClass = Literal["formula", "fixed", "misery"]


@dataclass(frozen=True)
class BidRule:
    kind: BidKind
    min_winners: int
    max_winners: int
    bid_class: BidClass
    base: int = 0
    slope: int = 0
    winner_points: int = 0
    loser_points: int = 0
    pool: int = 0


BID_RULES: dict[BidKind, BidRule] = {
    BidKind.SINGLE: BidRule(BidKind.SINGLE, 1, 1, "formula", base=6, slope=3),
    BidKind.DOUBLE: BidRule(BidKind.DOUBLE, 2, 2, "formula", base=2, slope=1),
    BidKind.TREBLE: BidRule(BidKind.TREBLE, 2, 2, "formula", base=4, slope=2),
    BidKind.ABUNDANCE: BidRule(BidKind.ABUNDANCE, 1, 1, "fixed", winner_points=18, loser_points=-6),
    BidKind.SOLO_SLAM: BidRule(BidKind.SOLO_SLAM, 1, 1, "fixed", winner_points=48, loser_points=-16),
    BidKind.SMALL_MISERY: BidRule(BidKind.SMALL_MISERY, 1, 3, "misery", pool=12),
    BidKind.LARGE_MISERY: BidRule(BidKind.LARGE_MISERY, 1, 3, "misery", pool=24),
}

BID_LABELS: dict[BidKind, str] = {
    BidKind.SINGLE: "Enkel",
    BidKind.DOUBLE: "Dubbel",
    BidKind.TREBLE: "Troel",
    BidKind.ABUNDANCE: "Abondance",
    BidKind.SMALL_MISERY: "Kleine misère",
    BidKind.LARGE_MISERY: "Grote misère",
    BidKind.SOLO_SLAM: "Solo slim",
}


def bid_rule(kind: BidKind | str) -> BidRule:
    return BID_RULES[BidKind(kind)]


def winner_range(kind: BidKind | str) -> tuple[int, int]:
    rule = bid_rule(kind)
    return rule.min_winners, rule.max_winners


def uses_overtricks(kind: BidKind | str) -> bool:
    return bid_rule(kind).bid_class == "formula"


def stored_overtricks(kind: BidKind | str, overtricks: int) -> int:
    """Overtricks are only meaningful for formula bids; everything else stores 0."""
    return overtricks if uses_overtricks(kind) else 0
