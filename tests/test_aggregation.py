from datetime import date
from uuid import uuid4

from kleurenwiezen.aggregation import round_points, summarize_sessions
from kleurenwiezen.bids import BidKind
from kleurenwiezen.repository import GameSession, Round, Score

GROUP_ID = uuid4()
PLAYER_IDS = [uuid4() for _ in range(4)]


def make_session(day: int) -> GameSession:
    return GameSession(id=uuid4(), group_id=GROUP_ID, date=date(2026, 3, day), title=f"Avond {day}")


def make_round(session: GameSession, round_no: int, bid: BidKind) -> Round:
    return Round(id=uuid4(), session_id=session.id, round_no=round_no, bid=bid, overtricks=0, multiplier=1)


def scores_for(item: Round, points: list[int]) -> list[Score]:
    return [Score(round_id=item.id, player_id=pid, points=pts) for pid, pts in zip(PLAYER_IDS, points)]


def test_session_totals_counts_and_group_totals():
    first = make_session(1)
    second = make_session(8)
    r1 = make_round(first, 1, BidKind.SINGLE)
    r2 = make_round(first, 2, BidKind.DOUBLE)
    r3 = make_round(second, 1, BidKind.SINGLE)
    scores = scores_for(r1, [6, -2, -2, -2]) + scores_for(r2, [-2, -2, 2, 2]) + scores_for(r3, [-2, -2, -2, 6])

    summary = summarize_sessions(PLAYER_IDS, [first, second], [r1, r2, r3], scores)

    by_session = {s.session.id: s for s in summary.sessions}
    assert by_session[first.id].totals == dict(zip(PLAYER_IDS, [4, -4, 0, 0]))
    assert by_session[first.id].round_count == 2
    assert by_session[first.id].bid_counts[BidKind.SINGLE] == 1
    assert by_session[first.id].bid_counts[BidKind.DOUBLE] == 1
    assert by_session[second.id].totals == dict(zip(PLAYER_IDS, [-2, -2, -2, 6]))

    assert summary.totals == dict(zip(PLAYER_IDS, [2, -6, -2, 6]))
    assert summary.round_count == 3
    assert summary.bid_counts[BidKind.SINGLE] == 2
    assert summary.bid_counts[BidKind.SOLO_SLAM] == 0
    assert set(summary.bid_counts) == set(BidKind)


def test_session_without_rounds_is_all_zero():
    empty = make_session(15)
    summary = summarize_sessions(PLAYER_IDS, [empty], [], [])

    only = summary.sessions[0]
    assert only.totals == {pid: 0 for pid in PLAYER_IDS}
    assert only.round_count == 0
    assert only.bid_counts == {kind: 0 for kind in BidKind}
    assert summary.totals == {pid: 0 for pid in PLAYER_IDS}


def test_orphan_rows_are_skipped():
    session = make_session(2)
    known = make_round(session, 1, BidKind.ABUNDANCE)
    stray_round = make_round(make_session(3), 1, BidKind.TREBLE)
    orphan_scores = [Score(round_id=uuid4(), player_id=PLAYER_IDS[0], points=100)]
    stranger = Score(round_id=known.id, player_id=uuid4(), points=50)

    summary = summarize_sessions(
        PLAYER_IDS,
        [session],
        [known, stray_round],
        scores_for(known, [18, -6, -6, -6]) + orphan_scores + [stranger],
    )

    assert summary.round_count == 1
    assert summary.bid_counts[BidKind.TREBLE] == 0
    assert summary.totals == dict(zip(PLAYER_IDS, [18, -6, -6, -6]))


def test_sparse_scores_default_to_zero():
    session = make_session(4)
    item = make_round(session, 1, BidKind.SINGLE)
    partial = scores_for(item, [6, -2])

    summary = summarize_sessions(PLAYER_IDS, [session], [item], partial)

    assert summary.sessions[0].totals[PLAYER_IDS[3]] == 0


def test_round_points_orders_by_round_number_and_fills_missing_players():
    session = make_session(5)
    late = make_round(session, 2, BidKind.DOUBLE)
    early = make_round(session, 1, BidKind.SINGLE)
    scores = scores_for(late, [2, 2, -2, -2]) + scores_for(early, [6, -2, -2])

    rows = round_points(PLAYER_IDS, [late, early], scores)

    assert [r.round.round_no for r in rows] == [1, 2]
    assert rows[0].points[PLAYER_IDS[3]] == 0
    assert rows[1].points == dict(zip(PLAYER_IDS, [2, 2, -2, -2]))
