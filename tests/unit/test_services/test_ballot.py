"""Tests for ballot submission and retrieval."""
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from elections.core.constants import ModAllowed, Status
from elections.core.exceptions import (
    BallotConflict,
    BallotValidationError,
    ElectionNotFound,
    EligibilityDenied,
    KeyMismatch,
    StorageError,
)
from elections.core.principal import Principal
from elections.db.models import Answer, Vote, Voter
from elections.db.base import Base
from elections.services import ledger, registry
from elections.services.ballot import retrieve_ballot, submit_ballot, validate_ballot
from elections.services.elections import create_election
from elections.services.eligibility import Eligibility, can_vote

TWO_QUESTIONS = [
    {"text": "Chair", "answers": [{"text": "Alice"}, {"text": "Bob"}]},
    {"text": "Budget", "answers": [{"text": "Yes"}, {"text": "No"}, {"text": "Abstain"}]},
]


def _tallies(db_session, election_id):
    rows = db_session.query(Answer).filter(Answer.election_id == election_id).all()
    for row in rows:
        db_session.refresh(row)
    return {(a.qid, a.aid): a.votes for a in rows}


def _ledger_per_question(db_session, election_id):
    rows = (
        db_session.query(Vote.qid, func.count())
        .filter(Vote.election_id == election_id)
        .group_by(Vote.qid)
        .all()
    )
    return dict(rows)


def _tally_per_question(db_session, election_id):
    totals = {}
    for (qid, _), votes in _tallies(db_session, election_id).items():
        totals[qid] = totals.get(qid, 0) + votes
    return {qid: total for qid, total in totals.items() if total}


@pytest.mark.unit
class TestValidateBallot:

    def test_complete_ballot(self, make_election):
        election = make_election(questions=TWO_QUESTIONS)
        assert validate_ballot(election, {"0": "1", "1": 2}) == {0: 1, 1: 2}

    def test_missing_question(self, make_election):
        election = make_election(questions=TWO_QUESTIONS)
        with pytest.raises(BallotValidationError, match="answer all remaining questions"):
            validate_ballot(election, {0: 1})

    def test_unknown_question(self, make_election):
        election = make_election(questions=TWO_QUESTIONS)
        with pytest.raises(BallotValidationError, match="Unknown question"):
            validate_ballot(election, {0: 1, 1: 0, 5: 0})

    def test_unknown_answer(self, make_election):
        election = make_election(questions=TWO_QUESTIONS)
        with pytest.raises(BallotValidationError, match="Invalid answer for question 1"):
            validate_ballot(election, {0: 1, 1: 3})

    def test_non_numeric(self, make_election):
        election = make_election()
        with pytest.raises(BallotValidationError):
            validate_ballot(election, {"zero": "one"})


@pytest.mark.unit
class TestSubmitBallot:

    def test_submit_and_retrieve_round_trip(self, db_session, make_election, anonymous):
        election = make_election(questions=TWO_QUESTIONS)
        receipt = submit_ballot(db_session, election.id, {0: 1, 1: 2}, anonymous)

        decoded = retrieve_ballot(db_session, receipt.access_key)
        assert decoded.answers == {0: 1, 1: 2}
        assert decoded.record_id == receipt.record_id
        assert decoded.election_id == election.id
        assert receipt.amended is False

    def test_access_key_format(self, db_session, make_election, anonymous):
        election = make_election()
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        record_id, private_key = receipt.access_key.split(":")
        assert int(record_id) == receipt.record_id
        assert len(private_key) == 32

    def test_private_key_is_not_stored(self, db_session, make_election, anonymous):
        election = make_election()
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        voter = db_session.get(Voter, receipt.record_id)
        stored = " ".join([voter.public_key, voter.vote_data, voter.vote_records])
        assert receipt.private_key not in stored

    def test_ledger_and_tallies_written(self, db_session, make_election, anonymous):
        election = make_election(questions=TWO_QUESTIONS)
        submit_ballot(db_session, election.id, {0: 1, 1: 0}, anonymous)

        assert ledger.count_votes(db_session, election.id) == {(0, 1): 1, (1, 0): 1}
        tallies = _tallies(db_session, election.id)
        assert tallies[(0, 1)] == 1
        assert tallies[(1, 0)] == 1
        assert tallies[(0, 0)] == 0

    def test_cookie_directive(self, db_session, make_election, anonymous):
        election = make_election()
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        assert receipt.cookie_name == f"elections-{election.pid}-{election.cookie_key}"
        assert len(receipt.cookie_value) == 64
        assert receipt.cookie_max_age == 86400

    def test_cannot_vote_twice(self, db_session, make_election, now):
        election = make_election()
        voter = Principal(user_id=5)
        submit_ballot(db_session, election.id, {0: 0}, voter)

        assert not can_vote(db_session, election, voter, now)
        with pytest.raises(EligibilityDenied) as exc_info:
            submit_ballot(db_session, election.id, {0: 1}, voter)
        assert exc_info.value.reason is Eligibility.ALREADY_VOTED

    def test_anonymous_ip_dedup(self, db_session, make_election):
        election = make_election()
        submit_ballot(db_session, election.id, {0: 0}, Principal(ip_address="198.51.100.4"))
        with pytest.raises(EligibilityDenied):
            submit_ballot(db_session, election.id, {0: 1}, Principal(ip_address="198.51.100.4"))

    def test_closed_election_rejected(self, db_session, make_election, anonymous):
        election = make_election()
        election.status = Status.CLOSED
        db_session.commit()
        with pytest.raises(EligibilityDenied) as exc_info:
            submit_ballot(db_session, election.id, {0: 0}, anonymous)
        assert exc_info.value.reason is Eligibility.NOT_OPEN

    def test_unknown_election(self, db_session, anonymous):
        with pytest.raises(ElectionNotFound):
            submit_ballot(db_session, 999, {0: 0}, anonymous)

    def test_incomplete_ballot_writes_nothing(self, db_session, make_election, anonymous):
        election = make_election(questions=TWO_QUESTIONS)
        with pytest.raises(BallotValidationError):
            submit_ballot(db_session, election.id, {0: 0}, anonymous)
        assert db_session.query(Voter).count() == 0
        assert db_session.query(Vote).count() == 0


@pytest.mark.unit
class TestRetrieveBallot:

    def test_wrong_private_key(self, db_session, make_election, anonymous):
        election = make_election()
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        with pytest.raises(KeyMismatch):
            retrieve_ballot(db_session, f"{receipt.record_id}:{'0' * 32}")

    def test_unknown_record(self, db_session):
        with pytest.raises(KeyMismatch, match="Invalid access key"):
            retrieve_ballot(db_session, f"4242:{'a' * 32}")

    def test_malformed_key(self, db_session):
        with pytest.raises(KeyMismatch, match="Invalid access key"):
            retrieve_ballot(db_session, "not a key")

    def test_other_election(self, db_session, make_election, anonymous):
        first = make_election(pid="first")
        second = make_election(pid="second")
        receipt = submit_ballot(db_session, first.id, {0: 0}, anonymous)
        with pytest.raises(KeyMismatch):
            retrieve_ballot(db_session, receipt.access_key, election_id=second.id)


@pytest.mark.unit
class TestAmendBallot:

    def test_amend_scenario(self, db_session, make_election, anonymous, now):
        """Vote A, get refused a second time, amend to B with the access key."""
        election = make_election(mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        assert _tallies(db_session, election.id) == {(0, 0): 1, (0, 1): 0}

        returning = Principal(
            ip_address=anonymous.ip_address,
            cookies={receipt.cookie_name: receipt.cookie_value},
        )
        assert not can_vote(db_session, election, returning, now)
        with pytest.raises(EligibilityDenied):
            submit_ballot(db_session, election.id, {0: 1}, returning)

        amended = submit_ballot(db_session, election.id, {0: 1}, returning, access_key=receipt.access_key)

        assert amended.amended is True
        assert amended.record_id == receipt.record_id
        assert _tallies(db_session, election.id) == {(0, 0): 0, (0, 1): 1}
        assert db_session.query(Vote).filter(Vote.election_id == election.id).count() == 1
        assert retrieve_ballot(db_session, amended.access_key).answers == {0: 1}

    def test_old_key_stops_working(self, db_session, make_election, anonymous):
        election = make_election(mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        submit_ballot(db_session, election.id, {0: 1}, anonymous, access_key=receipt.access_key)

        with pytest.raises(KeyMismatch):
            retrieve_ballot(db_session, receipt.access_key)

    def test_amend_needs_edit_permission(self, db_session, make_election, anonymous):
        election = make_election(mod_allowed=ModAllowed.VIEW_ONLY)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        with pytest.raises(EligibilityDenied) as exc_info:
            submit_ballot(db_session, election.id, {0: 1}, anonymous, access_key=receipt.access_key)
        assert exc_info.value.reason is Eligibility.CANNOT_UPDATE

    def test_amend_with_wrong_key(self, db_session, make_election, anonymous):
        election = make_election(mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)
        with pytest.raises(KeyMismatch):
            submit_ballot(db_session, election.id, {0: 1}, anonymous, access_key=f"{receipt.record_id}:{'f' * 32}")
        assert _tallies(db_session, election.id) == {(0, 0): 1, (0, 1): 0}

    def test_amend_across_elections_rejected(self, db_session, make_election, anonymous):
        first = make_election(pid="first", mod_allowed=ModAllowed.VIEW_AND_EDIT)
        second = make_election(pid="second", mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, first.id, {0: 0}, anonymous)
        with pytest.raises(KeyMismatch):
            submit_ballot(db_session, second.id, {0: 1}, anonymous, access_key=receipt.access_key)

    def test_tallies_match_ledger_after_mixed_sequence(self, db_session, make_election):
        election = make_election(questions=TWO_QUESTIONS, mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipts = [
            submit_ballot(db_session, election.id, {0: i % 2, 1: i % 3}, Principal(user_id=100 + i))
            for i in range(5)
        ]
        submit_ballot(db_session, election.id, {0: 0, 1: 2}, Principal(user_id=100), access_key=receipts[0].access_key)
        submit_ballot(db_session, election.id, {0: 1, 1: 1}, Principal(user_id=103), access_key=receipts[3].access_key)

        assert _tally_per_question(db_session, election.id) == _ledger_per_question(db_session, election.id)
        assert _ledger_per_question(db_session, election.id) == {0: 5, 1: 5}

        counts = ledger.count_votes(db_session, election.id)
        for key, votes in _tallies(db_session, election.id).items():
            assert counts.get(key, 0) == votes


@pytest.mark.unit
class TestSubmitFailures:

    def test_concurrent_duplicate_is_conflict(self, db_session, make_election):
        election = make_election()
        error = IntegrityError(
            "INSERT INTO voters", {}, Exception("UNIQUE constraint failed: voters.election_id, voters.user_id")
        )
        with patch("elections.services.ballot.registry.add_voter", side_effect=error):
            with pytest.raises(BallotConflict):
                submit_ballot(db_session, election.id, {0: 0}, Principal(user_id=5))

        assert db_session.query(Vote).count() == 0

    def test_storage_failure_rolls_back(self, db_session, make_election, anonymous):
        election = make_election()
        error = OperationalError("UPDATE answers", {}, Exception("database is locked"))
        with patch("elections.services.ballot.tally.increment", side_effect=error):
            with pytest.raises(StorageError) as exc_info:
                submit_ballot(db_session, election.id, {0: 0}, anonymous)

        assert exc_info.value.operation == "submit_ballot"
        assert db_session.query(Voter).count() == 0
        assert db_session.query(Vote).count() == 0

    def test_storage_error_message_has_no_detail(self, db_session, make_election, anonymous):
        election = make_election()
        error = OperationalError("UPDATE answers", {}, Exception("secret internals"))
        with patch("elections.services.ballot.tally.increment", side_effect=error):
            with pytest.raises(StorageError) as exc_info:
                submit_ballot(db_session, election.id, {0: 0}, anonymous)

        assert "secret internals" not in str(exc_info.value)


@pytest.mark.unit
class TestConcurrentAmendments:

    def test_stale_reseal_is_conflict(self, db_session, make_election, anonymous):
        election = make_election(mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)

        with patch("elections.services.ballot.registry.reseal_voter", return_value=False):
            with pytest.raises(BallotConflict):
                submit_ballot(db_session, election.id, {0: 1}, anonymous, access_key=receipt.access_key)

        assert db_session.query(Vote).count() == 1
        assert _tallies(db_session, election.id) == {(0, 0): 1, (0, 1): 0}
        assert retrieve_ballot(db_session, receipt.access_key).answers == {0: 0}

    def test_already_deleted_ledger_rows_are_conflict(self, db_session, make_election, anonymous):
        election = make_election(mod_allowed=ModAllowed.VIEW_AND_EDIT)
        receipt = submit_ballot(db_session, election.id, {0: 0}, anonymous)

        with patch("elections.services.ballot.ledger.delete_votes", return_value=0):
            with pytest.raises(BallotConflict):
                submit_ballot(db_session, election.id, {0: 1}, anonymous, access_key=receipt.access_key)

        assert db_session.query(Vote).count() == 1
        assert _tallies(db_session, election.id) == {(0, 0): 1, (0, 1): 0}

    def test_second_session_with_same_key_counts_once(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'amend.db'}")
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        first, second = Session(), Session()
        voter = Principal(ip_address="203.0.113.20")
        try:
            election = create_election(
                first, pid="race", topic="Race", mod_allowed=ModAllowed.VIEW_AND_EDIT,
                questions=[{"text": "Pick", "answers": [{"text": "A"}, {"text": "B"}]}],
            )
            receipt = submit_ballot(first, election.id, {0: 0}, voter)

            # The second session has read the row before the first amendment commits
            assert registry.get_voter(second, receipt.record_id) is not None

            submit_ballot(first, election.id, {0: 1}, voter, access_key=receipt.access_key)

            with pytest.raises((BallotConflict, KeyMismatch)):
                submit_ballot(second, election.id, {0: 1}, voter, access_key=receipt.access_key)
            second.rollback()

            assert first.query(Voter).count() == 1
            assert first.query(Vote).count() == 1
            assert ledger.count_votes(first, election.id) == {(0, 1): 1}
        finally:
            first.close()
            second.close()
            Base.metadata.drop_all(bind=engine)
            engine.dispose()
