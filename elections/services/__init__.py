from .ballot import BallotReceipt, DecodedBallot, retrieve_ballot, submit_ballot, validate_ballot
from .elections import (
    archive_election,
    create_election,
    delete_election,
    get_election,
    get_election_detail,
    list_elections,
    list_voters,
    move_user,
    rebuild_tallies,
    require_election,
    reset_election,
    run_maintenance,
    toggle_status,
)
from .eligibility import (
    Eligibility,
    already_voted,
    can_update,
    can_view_ballot,
    can_view_results,
    can_vote,
    check_vote_eligibility,
    is_open_for_voting,
)
from .tally import get_results

__all__ = [
    # ballots
    "BallotReceipt",
    "DecodedBallot",
    "retrieve_ballot",
    "submit_ballot",
    "validate_ballot",
    # elections
    "archive_election",
    "create_election",
    "delete_election",
    "get_election",
    "get_election_detail",
    "list_elections",
    "list_voters",
    "move_user",
    "rebuild_tallies",
    "require_election",
    "reset_election",
    "run_maintenance",
    "toggle_status",
    # eligibility
    "Eligibility",
    "already_voted",
    "can_update",
    "can_view_ballot",
    "can_view_results",
    "can_vote",
    "check_vote_eligibility",
    "is_open_for_voting",
    # results
    "get_results",
]
