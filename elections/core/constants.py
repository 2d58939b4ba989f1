"""Application constants.

Election states, group ids and the other enumerations shared by the
models, services and schemas live here so they are defined exactly once.
"""
from datetime import datetime, timezone
from enum import IntEnum


class Status(IntEnum):
    """Election lifecycle state."""

    OPEN = 0
    CLOSED = 1  # Administratively closed, can be reopened
    ARCHIVED = 2  # Terminal, read-only


class ModAllowed(IntEnum):
    """What a voter may do with a ballot after casting it."""

    NONE = 0
    VIEW_ONLY = 1
    VIEW_AND_EDIT = 2


class AnswerSort(IntEnum):
    """Order in which answers are presented on the ballot."""

    AS_ENTERED = 0
    RANDOM = 1
    ALPHABETICAL = 2
    BY_VOTE_COUNT = 3


class Groups:
    """Well-known access group ids."""

    ROOT = 1  # Site administrators
    ALL_USERS = 2  # Everybody, including anonymous visitors
    LOGGED_IN = 13  # Any authenticated user


# Sentinel window bounds: "always open" and "never closes"
OPENS_MIN = datetime(1970, 1, 1, tzinfo=timezone.utc)
CLOSES_MAX = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

# Random token sizes in bytes (hex encoded to twice as many characters)
KEY_BYTES = 16
LEDGER_ID_BYTES = 16
COOKIE_KEY_BYTES = 8

# Election slug length limit
PID_MAX_LENGTH = 128

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480
