"""Tests for election state and voter eligibility."""
from datetime import timedelta

import pytest

from elections.core.constants import Groups, ModAllowed, Status
from elections.core.principal import Principal
from elections.db.models import Election
from elections.services import registry
from elections.services.eligibility import (
    Eligibility,
    already_voted,
    can_update,
    can_view_ballot,
    can_view_results,
    can_vote,
    check_vote_eligibility,
    is_mutable,
    is_open_for_voting,
    vote_cookie_name,
)

ROOT = Principal(user_id=1, groups=frozenset({Groups.ROOT}))


def _register(db_session, election, user_id=None, ip_address="", now=None):
    registry.add_voter(
        db_session,
        election_id=election.id,
        user_id=user_id,
        ip_address=ip_address,
        public_key="pub",
        vote_data="sealed",
        vote_records="sealed",
        voted_at=now,
    )
    db_session.commit()


@pytest.mark.unit
class TestOpenForVoting:

    def test_default_window_is_always_open(self, make_election, now):
        assert is_open_for_voting(make_election(), now)

    def test_closed_status(self, make_election, now):
        election = make_election()
        election.status = Status.CLOSED
        assert not is_open_for_voting(election, now)

    def test_not_yet_open(self, make_election, now):
        election = make_election(opens=now + timedelta(hours=1))
        assert not is_open_for_voting(election, now)

    def test_past_close(self, make_election, past_window, now):
        opens, closes = past_window
        assert not is_open_for_voting(make_election(opens=opens, closes=closes), now)

    def test_archived_is_immutable(self, make_election):
        election = make_election()
        assert is_mutable(election)
        election.status = Status.ARCHIVED
        assert not is_mutable(election)


@pytest.mark.unit
class TestAlreadyVoted:

    def test_user_with_registry_row(self, db_session, make_election, now):
        election = make_election()
        _register(db_session, election, user_id=5, now=now)
        assert already_voted(db_session, election, Principal(user_id=5))
        assert not already_voted(db_session, election, Principal(user_id=6))

    def test_login_only_election_ignores_cookie_and_ip(self, db_session, make_election, now):
        election = make_election(voting_group=Groups.LOGGED_IN)
        _register(db_session, election, user_id=5, ip_address="198.51.100.7", now=now)
        other = Principal(
            user_id=6,
            ip_address="198.51.100.7",
            cookies={vote_cookie_name(election): "x"},
        )
        assert not already_voted(db_session, election, other)

    def test_cookie_marks_anonymous_voter(self, db_session, make_election):
        election = make_election()
        principal = Principal(cookies={vote_cookie_name(election): "x"})
        assert already_voted(db_session, election, principal)

    def test_cookie_from_before_reset_is_ignored(self, db_session, make_election):
        election = make_election()
        stale = f"elections-{election.pid}-0000000000000000"
        assert not already_voted(db_session, election, Principal(cookies={stale: "x"}))

    def test_ip_fallback(self, db_session, make_election, now):
        election = make_election()
        _register(db_session, election, ip_address="198.51.100.7", now=now)
        assert already_voted(db_session, election, Principal(ip_address="198.51.100.7"))
        assert not already_voted(db_session, election, Principal(ip_address="198.51.100.8"))


@pytest.mark.unit
class TestCanVote:

    def test_allowed(self, db_session, make_election, anonymous, now):
        election = make_election()
        assert check_vote_eligibility(db_session, election, anonymous, now) is Eligibility.ALLOWED
        assert can_vote(db_session, election, anonymous, now)

    def test_not_open(self, db_session, make_election, past_window, anonymous, now):
        opens, closes = past_window
        election = make_election(opens=opens, closes=closes)
        assert check_vote_eligibility(db_session, election, anonymous, now) is Eligibility.NOT_OPEN

    def test_not_in_group(self, db_session, make_election, anonymous, now):
        election = make_election(voting_group=42)
        assert check_vote_eligibility(db_session, election, anonymous, now) is Eligibility.NOT_IN_GROUP
        member = Principal(user_id=3, groups=frozenset({42}))
        assert can_vote(db_session, election, member, now)

    def test_logged_in_group_rejects_anonymous(self, db_session, make_election, anonymous, now):
        election = make_election(voting_group=Groups.LOGGED_IN)
        assert not can_vote(db_session, election, anonymous, now)
        assert can_vote(db_session, election, Principal(user_id=3), now)

    def test_already_voted(self, db_session, make_election, now):
        election = make_election()
        _register(db_session, election, user_id=5, now=now)
        result = check_vote_eligibility(db_session, election, Principal(user_id=5), now)
        assert result is Eligibility.ALREADY_VOTED


@pytest.mark.unit
class TestCanUpdateAndView:

    def test_can_update_needs_edit_permission(self, make_election, now):
        assert not can_update(make_election(pid="none"), now)
        assert not can_update(make_election(pid="view", mod_allowed=ModAllowed.VIEW_ONLY), now)
        assert can_update(make_election(pid="edit", mod_allowed=ModAllowed.VIEW_AND_EDIT), now)

    def test_can_update_needs_open_election(self, make_election, past_window, now):
        opens, closes = past_window
        election = make_election(opens=opens, closes=closes, mod_allowed=ModAllowed.VIEW_AND_EDIT)
        assert not can_update(election, now)

    def test_can_view_ballot(self, make_election):
        assert not can_view_ballot(make_election(pid="none"))
        assert can_view_ballot(make_election(pid="view", mod_allowed=ModAllowed.VIEW_ONLY))
        assert can_view_ballot(make_election(pid="edit", mod_allowed=ModAllowed.VIEW_AND_EDIT))


@pytest.mark.unit
class TestCanViewResults:

    def test_unsaved_election(self, anonymous):
        assert not can_view_results(Election(pid="draft", topic="Draft"), anonymous)
        assert not can_view_results(None, ROOT)

    def test_hidden_while_open(self, make_election, anonymous, now):
        election = make_election(hide_results=True)
        assert not can_view_results(election, anonymous, now)

    def test_visible_while_open_when_not_hidden(self, make_election, anonymous, now):
        election = make_election(hide_results=False)
        assert can_view_results(election, anonymous, now)

    def test_owner_sees_hidden_results(self, make_election, now):
        election = make_election(hide_results=True, owner_id=9)
        assert can_view_results(election, Principal(user_id=9), now)
        assert not can_view_results(election, Principal(user_id=10), now)

    def test_root_always_sees_results(self, make_election, now):
        election = make_election(hide_results=True, results_group=42)
        assert can_view_results(election, ROOT, now)

    def test_results_group_required(self, make_election, past_window, anonymous, now):
        opens, closes = past_window
        election = make_election(opens=opens, closes=closes, results_group=42)
        assert not can_view_results(election, anonymous, now)
        assert can_view_results(election, Principal(user_id=3, groups=frozenset({42})), now)

    def test_closed_in_the_past_ignores_hide_results(self, db_session, make_election, past_window, anonymous, now):
        opens, closes = past_window
        election = make_election(opens=opens, closes=closes, hide_results=True)
        assert not can_vote(db_session, election, anonymous, now)
        assert can_view_results(election, anonymous, now)

    def test_closed_status_ignores_hide_results(self, make_election, anonymous, now):
        election = make_election(hide_results=True)
        election.status = Status.CLOSED
        assert can_view_results(election, anonymous, now)
