"""Actor identity resolution.

The workflow services never look at a ``User`` directly: they work with an
:class:`Actor`, which carries the workflow role, the name written into the
update history and the district / branch / officer the actor is bound to.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from accounts.models import User

logger = logging.getLogger("salesflow")

OFFICER = "OFFICER"
BRANCH_MANAGER = "BRANCH_MANAGER"
DISTRICT_MANAGER = "DISTRICT_MANAGER"

ROLE_LABELS = {
    OFFICER: "Officer",
    BRANCH_MANAGER: "Branch Manager",
    DISTRICT_MANAGER: "District Manager",
}


@dataclass(frozen=True)
class Actor:
    role: str
    display_name: str
    district_id: object = None
    branch_id: object = None
    officer_id: object = None

    @property
    def role_label(self) -> str:
        return ROLE_LABELS.get(self.role, self.role)

    @classmethod
    def officer(cls, officer) -> "Actor":
        return cls(
            role=OFFICER,
            display_name=officer.name,
            district_id=officer.branch.district_id,
            branch_id=officer.branch_id,
            officer_id=officer.pk,
        )

    @classmethod
    def branch_manager(cls, branch=None, display_name: str = "") -> "Actor":
        return cls(
            role=BRANCH_MANAGER,
            display_name=display_name or ROLE_LABELS[BRANCH_MANAGER],
            district_id=getattr(branch, "district_id", None),
            branch_id=getattr(branch, "pk", None),
        )

    @classmethod
    def district_manager(cls, district=None, display_name: str = "") -> "Actor":
        return cls(
            role=DISTRICT_MANAGER,
            display_name=display_name or ROLE_LABELS[DISTRICT_MANAGER],
            district_id=getattr(district, "pk", None),
        )


def resolve_actor(user) -> Actor | None:
    """Return the workflow :class:`Actor` for *user*, or None.

    - Officers need a linked :class:`~branches.models.Officer` record and
      are named after it.
    - Managers are named after their role label, scoped to their district
      or branch; a manager bound to neither has no actor.
    - Admins and superusers act as unscoped district managers.
    """
    if user is None or not user.is_authenticated:
        return None

    if user.is_superuser or user.role == User.Role.ADMIN:
        return Actor.district_manager()

    if user.role == User.Role.DISTRICT_MANAGER:
        if user.district_id is None:
            logger.warning("User %s is a district manager without a district", user.pk)
            return None
        return Actor.district_manager(district=user.district)

    if user.role == User.Role.BRANCH_MANAGER:
        if user.branch_id is None:
            logger.warning("User %s is a branch manager without a branch", user.pk)
            return None
        return Actor.branch_manager(branch=user.branch)

    if user.role == User.Role.OFFICER:
        officer = getattr(user, "officer_profile", None)
        if officer is None:
            logger.warning("User %s has the officer role but no officer record", user.pk)
            return None
        return Actor.officer(officer)

    return None
