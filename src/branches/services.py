"""Service / helper functions for the branches app."""
from __future__ import annotations

from typing import Any

from branches.models import AuditLog, Branch, District


def create_audit_log(
    actor,
    action: str,
    entity_type: str,
    entity_id: str,
    *,
    actor_name: str = "",
    district: District | None = None,
    branch: Branch | None = None,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    ip: str | None = None,
) -> AuditLog:
    """Create and return a new :class:`~branches.models.AuditLog` entry.

    *actor* is the acting user and may be ``None`` for system actions.
    """
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    if not actor_name and actor is not None:
        actor_name = str(actor)
    return AuditLog.objects.create(
        actor=actor,
        actor_name=actor_name,
        district=district,
        branch=branch,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=before,
        after_json=after,
        ip_address=ip,
    )


def visible_district_ids(user):
    """District ids whose leads and plans *user* may read.

    Returns ``None`` for unrestricted users (admins, superusers).
    """
    if user.is_superuser or user.role == user.Role.ADMIN:
        return None
    if user.role == user.Role.DISTRICT_MANAGER:
        return [user.district_id] if user.district_id else []
    if user.role == user.Role.BRANCH_MANAGER and user.branch_id:
        return [user.branch.district_id]
    officer = getattr(user, "officer_profile", None)
    if officer is not None:
        return [officer.branch.district_id]
    return []


def visible_branch_ids(user):
    """Branch ids *user* may read; ``None`` means every branch of the visible districts."""
    if user.is_superuser or user.role in (user.Role.ADMIN, user.Role.DISTRICT_MANAGER):
        return None
    if user.role == user.Role.BRANCH_MANAGER:
        return [user.branch_id] if user.branch_id else []
    officer = getattr(user, "officer_profile", None)
    if officer is not None:
        return [officer.branch_id]
    return []
