"""Domain errors raised by the workflow services.

Every error carries a stable ``code`` so the API layer can surface it to
the actor without parsing the message.  All of them subclass ``ValueError``
so callers that only care about "the action was refused" can keep catching
``ValueError`` the way the service layer always has.
"""
from __future__ import annotations


class WorkflowError(ValueError):
    """Base class for refused actions. The entity is left unmodified."""

    code = "WORKFLOW_ERROR"
    http_status = 400

    def __init__(self, message: str = "", *, code: str | None = None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        if code:
            self.code = code

    @property
    def message(self) -> str:
        return str(self)

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class InvalidTransition(WorkflowError):
    """The requested status change is not allowed."""

    code = "INVALID_TRANSITION"


class ReasonRequired(InvalidTransition):
    """A rework or rejection needs an explanatory note."""

    code = "REASON_REQUIRED"


class AlreadyReviewed(WorkflowError):
    """The plan entry has already been reviewed."""

    code = "ALREADY_REVIEWED"
    http_status = 409


class DescriptionTooShort(WorkflowError):
    """The description is too short."""

    code = "DESCRIPTION_TOO_SHORT"


class InvalidAmount(WorkflowError):
    """The amount must be strictly positive."""

    code = "INVALID_AMOUNT"


class InvalidLead(WorkflowError):
    """The lead data is invalid."""

    code = "INVALID_LEAD"


class InvalidPlan(WorkflowError):
    """The plan data is invalid."""

    code = "INVALID_PLAN"


class DuplicatePlan(WorkflowError):
    """A plan already exists for this branch and quarter."""

    code = "DUPLICATE_PLAN"
    http_status = 409


class ConcurrentModification(WorkflowError):
    """The record was modified by another request; reload and retry."""

    code = "CONCURRENT_MODIFICATION"
    http_status = 409
