from __future__ import annotations

import math
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

from kleurenwiezen.bids import BidKind, BidRule, bid_rule

PLAYERS_PER_ROUND = 4


class ScoringError(ValueError):
    """Base class for rejected round inputs. The caller re-prompts and retries."""

    code = "scoring_error"

    def details(self) -> dict[str, Any]:
        return {}


class InvalidPlayerCount(ScoringError):
    code = "invalid_player_count"

    def __init__(self, received: int) -> None:
        self.received = received
        super().__init__(f"Exactly {PLAYERS_PER_ROUND} distinct players are required, got {received}")

    def details(self) -> dict[str, Any]:
        return {"required": PLAYERS_PER_ROUND, "received": self.received}


class InvalidWinnerCount(ScoringError):
    code = "invalid_winner_count"

    def __init__(self, min_winners: int, max_winners: int, received: int) -> None:
        self.min_winners = min_winners
        self.max_winners = max_winners
        self.received = received
        expected = str(min_winners) if min_winners == max_winners else f"{min_winners} to {max_winners}"
        super().__init__(f"Select {expected} winner(s) among the round's players, got {received}")

    def details(self) -> dict[str, Any]:
        return {"min": self.min_winners, "max": self.max_winners, "received": self.received}


class NoLosers(ScoringError):
    code = "no_losers"

    def __init__(self) -> None:
        super().__init__("At least one loser is required")


class ImpossibleDistribution(ScoringError):
    code = "impossible_distribution"

    def __init__(self, amount: Fraction, winner_amount: Fraction | int) -> None:
        self.amount = amount
        self.winner_amount = winner_amount
        super().__init__(
            f"Points cannot be split into whole numbers: share {amount} for winner amount {winner_amount}"
        )

    def details(self) -> dict[str, Any]:
        return {"amount": str(self.amount), "winner_amount": str(self.winner_amount)}


class NonZeroSumInvariantViolation(ScoringError):
    code = "non_zero_sum"

    def __init__(self, total: int) -> None:
        self.total = total
        super().__init__(f"Round points sum to {total}, not 0")

    def details(self) -> dict[str, Any]:
        return {"sum": self.total}


@dataclass(frozen=True)
class RoundOutcome:
    points: dict[Hashable, int] | None = None
    error: ScoringError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def coerce_multiplier(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return max(1, value)
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 1
    if not math.isfinite(number) or number < 1:
        return 1
    return int(number)


def coerce_overtricks(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def _whole(share: Fraction, winner_amount: Fraction | int) -> int:
    if share.denominator != 1:
        raise ImpossibleDistribution(share, winner_amount)
    return int(share)


def _formula_amounts(rule: BidRule, overtricks: int, losers: int) -> tuple[int, int]:
    if overtricks >= 0:
        win = rule.base + rule.slope * overtricks
    else:
        win = -(rule.base + rule.slope * abs(overtricks))
    if rule.kind is BidKind.SINGLE:
        # one winner is paid by three losers
        return win, _whole(Fraction(-win, losers), win)
    return win, -win


def _misery_amounts(rule: BidRule, winners: int, losers: int) -> tuple[int, int]:
    win_share = Fraction(rule.pool, winners)
    lose_share = Fraction(-rule.pool, losers)
    return _whole(win_share, win_share), _whole(lose_share, win_share)


def score_round(
    players: Sequence[Hashable],
    bid: BidKind | str,
    winners: Iterable[Hashable],
    overtricks: Any = 0,
    multiplier: Any = 1,
) -> dict[Hashable, int]:
    """Points per player for one round.

    Raises a ScoringError subclass when the declared winners do not fit the bid
    or the payout cannot be split into whole points. The result has one entry
    per player, in the order of ``players``, and always sums to zero.
    """
    if len(players) != PLAYERS_PER_ROUND or len(set(players)) != PLAYERS_PER_ROUND:
        raise InvalidPlayerCount(len(set(players)))

    rule = bid_rule(bid)
    winner_set = set(winners)
    if not winner_set <= set(players) or not rule.min_winners <= len(winner_set) <= rule.max_winners:
        raise InvalidWinnerCount(rule.min_winners, rule.max_winners, len(winner_set))

    losers = [p for p in players if p not in winner_set]
    if not losers:
        raise NoLosers()

    o = coerce_overtricks(overtricks)
    factor = coerce_multiplier(multiplier)

    if rule.bid_class == "formula":
        win, lose = _formula_amounts(rule, o, len(losers))
    elif rule.bid_class == "misery":
        win, lose = _misery_amounts(rule, len(winner_set), len(losers))
    else:
        win, lose = rule.winner_points, rule.loser_points

    points = {p: (win if p in winner_set else lose) * factor for p in players}

    total = sum(points.values())
    if total != 0:
        raise NonZeroSumInvariantViolation(total)
    return points


def evaluate_round(
    players: Sequence[Hashable],
    bid: BidKind | str,
    winners: Iterable[Hashable],
    overtricks: Any = 0,
    multiplier: Any = 1,
) -> RoundOutcome:
    try:
        return RoundOutcome(points=score_round(players, bid, winners, overtricks, multiplier))
    except ScoringError as exc:
        return RoundOutcome(error=exc)
