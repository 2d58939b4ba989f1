"""Election state and voter eligibility.

Every predicate here is query-only and never raises for an ordinary "no";
callers get a bool or an ``Eligibility`` value and decide what to show.
"""
import enum
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from elections.core.config import settings
from elections.core.constants import Groups, ModAllowed, Status
from elections.core.principal import Principal
from elections.core.utils import is_within_window
from elections.db.models import Election
from elections.services.registry import has_ip_voted, has_user_voted


class Eligibility(str, enum.Enum):
    ALLOWED = "allowed"
    NOT_OPEN = "not_open"
    NOT_IN_GROUP = "not_in_group"
    ALREADY_VOTED = "already_voted"
    CANNOT_UPDATE = "cannot_update"


def is_open_for_voting(election: Election, now: Optional[datetime] = None) -> bool:
    """OPEN status and ``now`` inside ``[opens, closes)``."""
    return election.status == Status.OPEN and is_within_window(election.opens, election.closes, now)


def vote_cookie_name(election: Election) -> str:
    """Name of the anonymous "already voted" cookie for this election.

    Includes the current cookie key, so a reset orphans every cookie issued
    before it.
    """
    return f"{settings.VOTE_COOKIE_PREFIX}-{election.pid}-{election.cookie_key}"


def already_voted(db: Session, election: Election, principal: Principal) -> bool:
    """
    Check whether the principal has already cast a ballot.

    Order, first match wins:
      1. Authenticated user with a registry row for this election.
      2. Login-only election: no anonymous fallback, not voted.
      3. The election's voter cookie is present.
      4. A registry row from the same IP address (best effort).
    """
    if principal.is_authenticated and has_user_voted(db, election.id, principal.user_id):
        return True

    if election.voting_group != Groups.ALL_USERS:
        return False

    if vote_cookie_name(election) in principal.cookies:
        return True

    return has_ip_voted(db, election.id, principal.ip_address)


def check_vote_eligibility(
    db: Session,
    election: Election,
    principal: Principal,
    now: Optional[datetime] = None,
) -> Eligibility:
    """Why (or whether) the principal may cast a new ballot."""
    if not is_open_for_voting(election, now):
        return Eligibility.NOT_OPEN
    if not principal.in_group(election.voting_group):
        return Eligibility.NOT_IN_GROUP
    if already_voted(db, election, principal):
        return Eligibility.ALREADY_VOTED
    return Eligibility.ALLOWED


def can_vote(
    db: Session,
    election: Election,
    principal: Principal,
    now: Optional[datetime] = None,
) -> bool:
    return check_vote_eligibility(db, election, principal, now) is Eligibility.ALLOWED


def can_update(election: Election, now: Optional[datetime] = None) -> bool:
    """Ballots may be amended only while voting is open and edits are enabled."""
    return election.mod_allowed == ModAllowed.VIEW_AND_EDIT and is_open_for_voting(election, now)


def can_view_ballot(election: Election) -> bool:
    """Whether voters may look at their own sealed ballot at all."""
    return election.mod_allowed in (ModAllowed.VIEW_ONLY, ModAllowed.VIEW_AND_EDIT)


def can_view_results(
    election: Optional[Election],
    principal: Principal,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether the principal may see the results.

    Site administrators always can. Everyone else needs the results group;
    while voting is open and results are hidden, only the owner sees them.
    Once voting is over the hide flag no longer applies.
    """
    if election is None or election.id is None:
        return False
    if principal.is_root:
        return True
    if not principal.in_group(election.results_group):
        return False
    if election.hide_results and is_open_for_voting(election, now):
        return election.owner_id is not None and principal.user_id == election.owner_id
    return True


def is_mutable(election: Election) -> bool:
    """Archived elections are read-only."""
    return election.status != Status.ARCHIVED
