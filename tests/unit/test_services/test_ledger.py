"""Tests for the vote ledger."""
import pytest

from elections.db.models import Vote
from elections.services import ledger


@pytest.mark.unit
class TestLedger:

    def test_record_votes_one_row_per_question(self, db_session, make_election):
        election = make_election(questions=[
            {"text": "Q0", "answers": [{"text": "a"}, {"text": "b"}]},
            {"text": "Q1", "answers": [{"text": "c"}, {"text": "d"}]},
        ])
        ids = ledger.record_votes(db_session, election.id, {1: 0, 0: 1})
        db_session.commit()

        assert len(ids) == 2
        assert len(set(ids)) == 2
        rows = db_session.query(Vote).filter(Vote.election_id == election.id).all()
        assert {(r.qid, r.aid) for r in rows} == {(0, 1), (1, 0)}

    def test_ids_are_in_question_order(self, db_session, make_election):
        election = make_election(questions=[
            {"text": "Q0", "answers": [{"text": "a"}, {"text": "b"}]},
            {"text": "Q1", "answers": [{"text": "c"}, {"text": "d"}]},
        ])
        ids = ledger.record_votes(db_session, election.id, {1: 1, 0: 0})
        db_session.commit()

        first = db_session.query(Vote).filter(Vote.id == ids[0]).one()
        assert first.qid == 0

    def test_delete_votes_by_id(self, db_session, make_election):
        election = make_election()
        keep = ledger.record_votes(db_session, election.id, {0: 0})
        drop = ledger.record_votes(db_session, election.id, {0: 1})
        db_session.commit()

        assert ledger.delete_votes(db_session, drop) == 1
        db_session.commit()

        remaining = [v.id for v in db_session.query(Vote).all()]
        assert remaining == keep

    def test_delete_votes_empty_is_noop(self, db_session):
        assert ledger.delete_votes(db_session, []) == 0

    def test_delete_election_votes_scoped(self, db_session, make_election):
        first = make_election(pid="first")
        second = make_election(pid="second")
        ledger.record_votes(db_session, first.id, {0: 0})
        ledger.record_votes(db_session, second.id, {0: 0})
        db_session.commit()

        ledger.delete_election_votes(db_session, first.id)
        db_session.commit()

        assert ledger.count_votes(db_session, first.id) == {}
        assert ledger.count_votes(db_session, second.id) == {(0, 0): 1}

    def test_count_votes(self, db_session, make_election):
        election = make_election()
        for aid in (0, 0, 1):
            ledger.record_votes(db_session, election.id, {0: aid})
        db_session.commit()

        assert ledger.count_votes(db_session, election.id) == {(0, 0): 2, (0, 1): 1}
