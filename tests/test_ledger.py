from datetime import date

import pytest

from kleurenwiezen import ledger
from kleurenwiezen.bids import BidKind
from kleurenwiezen.repository import (
    DuplicateRoundError,
    InMemoryRepository,
    IntegrityError,
    RepositoryError,
)
from kleurenwiezen.round_scoring import InvalidWinnerCount
from kleurenwiezen.schemas import MultiplierFlags, RoundInput


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def table(repo):
    group = repo.create_group("Dinsdagclub", owner="anna@example.com")
    players = [repo.add_player(group.id, name) for name in ("Anna", "Bert", "Carl", "Dirk")]
    session = repo.create_session(group.id, date(2026, 10, 6), "Avond 2026-10-06")
    return group, players, session


def test_record_round_stores_round_and_four_scores(repo, table):
    _, players, session = table
    req = RoundInput(bid=BidKind.SINGLE, winners=[players[0].id], overtricks=1)

    recorded = ledger.record_round(repo, session, players, req)

    assert isinstance(recorded, ledger.StoredRound)
    assert recorded.round.round_no == 1
    assert recorded.round.overtricks == 1
    assert recorded.points[players[0].id] == 9
    scores = repo.list_scores([recorded.round.id])
    assert len(scores) == 4
    assert sum(s.points for s in scores) == 0


def test_round_numbers_increase_and_flags_multiply(repo, table):
    _, players, session = table
    ledger.record_round(repo, session, players, RoundInput(bid=BidKind.ABUNDANCE, winners=[players[1].id]))
    req = RoundInput(
        bid=BidKind.ABUNDANCE,
        winners=[players[1].id],
        overtricks=3,
        flags=MultiplierFlags(passed=True, full_round=True),
    )

    second = ledger.record_round(repo, session, players, req)

    assert second.round.round_no == 2
    assert second.round.multiplier == 4
    assert second.round.overtricks == 0
    assert second.points[players[1].id] == 72
    assert ledger.next_round_no(repo, session.id) == 3


def test_rejected_round_is_not_stored(repo, table):
    _, players, session = table
    with pytest.raises(InvalidWinnerCount):
        ledger.record_round(repo, session, players, RoundInput(bid=BidKind.DOUBLE, winners=[players[0].id]))
    assert repo.list_rounds([session.id]) == []


def test_failed_score_insert_deletes_round(repo, table, monkeypatch):
    _, players, session = table

    def broken_insert(rows):
        raise RepositoryError("connection lost")

    monkeypatch.setattr(repo, "insert_scores", broken_insert)
    with pytest.raises(RepositoryError):
        ledger.record_round(repo, session, players, RoundInput(bid=BidKind.SOLO_SLAM, winners=[players[2].id]))

    assert repo.list_rounds([session.id]) == []
    assert ledger.next_round_no(repo, session.id) == 1


def test_delete_round_removes_scores_first(repo, table):
    _, players, session = table
    recorded = ledger.record_round(repo, session, players, RoundInput(bid=BidKind.SINGLE, winners=[players[3].id]))

    with pytest.raises(IntegrityError):
        repo.delete_round(recorded.round.id)

    assert ledger.delete_round(repo, recorded.round.id)
    assert repo.get_round(recorded.round.id) is None
    assert repo.list_scores([recorded.round.id]) == []


def test_duplicate_round_number_is_rejected(repo, table):
    _, _, session = table
    repo.insert_round(session.id, 1, BidKind.SINGLE, 0, 1)
    with pytest.raises(DuplicateRoundError):
        repo.insert_round(session.id, 1, BidKind.DOUBLE, 0, 1)


def test_group_lookup_by_join_code(repo, table):
    group, _, _ = table
    assert len(group.join_code) == 6
    assert repo.get_group_by_code(f" {group.join_code.lower()} ") == group
    assert repo.get_group_by_code("NOPE00") is None


def test_sessions_are_ordered_by_date(repo, table):
    group, _, first = table
    later = repo.create_session(group.id, date(2026, 10, 13), "Avond 2026-10-13")
    assert [s.id for s in repo.list_sessions(group.id)] == [later.id, first.id]
    assert [s.id for s in repo.list_sessions(group.id, descending=False)] == [first.id, later.id]


def test_single_note_per_session(repo, table):
    _, _, session = table
    note = ledger.save_note(repo, session.id, "  Bert trakteert  ")
    updated = ledger.save_note(repo, session.id, "Carl trakteert")

    assert updated.id == note.id
    assert repo.get_note(session.id).body == "Carl trakteert"
    with pytest.raises(ValueError):
        ledger.save_note(repo, session.id, "   ")

    assert ledger.delete_note(repo, session.id)
    assert repo.get_note(session.id) is None
    assert not ledger.delete_note(repo, session.id)
