"""Error taxonomy for reviewer assignment and healing.

Every error raised by the engines is an :class:`AssignmentError` carrying an
:class:`ErrorKind`, a stable ``code`` and the identifiers involved, so the
HTTP layer can translate it without inspecting messages.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of an assignment error."""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    INVALID_ASSIGNMENT = "invalid_assignment"
    NO_ELIGIBLE_CANDIDATES = "no_eligible_candidates"
    UPSTREAM = "upstream"
    TIMEOUT = "timeout"


class AssignmentError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.UPSTREAM
    code: str = "UPSTREAM"
    default_message: str = "assignment operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = {key: value for key, value in details.items() if value is not None}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind.value}, details={self.details})>"


# Not found

class TeamNotFound(AssignmentError):
    kind = ErrorKind.NOT_FOUND
    code = "TEAM_NOT_FOUND"
    default_message = "team not found"


class UserNotFound(AssignmentError):
    kind = ErrorKind.NOT_FOUND
    code = "USER_NOT_FOUND"
    default_message = "user not found"


class PullRequestNotFound(AssignmentError):
    kind = ErrorKind.NOT_FOUND
    code = "PR_NOT_FOUND"
    default_message = "pull request not found"


# Conflicts

class TeamAlreadyExists(AssignmentError):
    kind = ErrorKind.CONFLICT
    code = "TEAM_EXISTS"
    default_message = "team already exists"


class PullRequestAlreadyExists(AssignmentError):
    kind = ErrorKind.CONFLICT
    code = "PR_EXISTS"
    default_message = "pull request already exists"


class AlreadyAssigned(AssignmentError):
    kind = ErrorKind.CONFLICT
    code = "ALREADY_ASSIGNED"
    default_message = "reviewer already assigned"


# Invalid state

class PullRequestNotOpen(AssignmentError):
    kind = ErrorKind.INVALID_STATE
    code = "PR_MERGED"
    default_message = "pull request is not open"


class InvalidStatus(AssignmentError):
    kind = ErrorKind.INVALID_STATE
    code = "INVALID_STATUS"
    default_message = "invalid pull request status"


class UserStillActive(AssignmentError):
    kind = ErrorKind.INVALID_STATE
    code = "USER_ACTIVE"
    default_message = "user is still active"


# Invalid assignment

class CannotAssignAuthor(AssignmentError):
    kind = ErrorKind.INVALID_ASSIGNMENT
    code = "CANNOT_ASSIGN_AUTHOR"
    default_message = "cannot assign pull request author as reviewer"


class UserInactive(AssignmentError):
    kind = ErrorKind.INVALID_ASSIGNMENT
    code = "USER_INACTIVE"
    default_message = "user is inactive"


class NotAssigned(AssignmentError):
    kind = ErrorKind.INVALID_ASSIGNMENT
    code = "NOT_ASSIGNED"
    default_message = "reviewer is not assigned to this pull request"


# Candidates

class NoEligibleReviewers(AssignmentError):
    kind = ErrorKind.NO_ELIGIBLE_CANDIDATES
    code = "NO_CANDIDATE"
    default_message = "no active reviewers available"


# Infrastructure

class UpstreamError(AssignmentError):
    kind = ErrorKind.UPSTREAM
    code = "UPSTREAM"
    default_message = "storage operation failed"


class DeadlineExceeded(AssignmentError):
    kind = ErrorKind.TIMEOUT
    code = "DEADLINE_EXCEEDED"
    default_message = "operation deadline exceeded"
