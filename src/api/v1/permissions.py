"""Custom DRF permissions for the sales lead workflow API."""
from rest_framework.permissions import SAFE_METHODS, BasePermission


def _is_admin(user):
    return user.is_authenticated and (user.is_superuser or user.role == 'ADMIN')


class IsAdmin(BasePermission):
    """Allow access to administrators only."""

    def has_permission(self, request, view):
        return _is_admin(request.user)


class IsAdminOrReadOnly(BasePermission):
    """Read for every authenticated user, write for administrators."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return _is_admin(request.user)


class IsDistrictManagerOrAdmin(BasePermission):
    """Allow access to district managers and administrators."""

    def has_permission(self, request, view):
        return _is_admin(request.user) or (
            request.user.is_authenticated and request.user.role == 'DISTRICT_MANAGER'
        )

    def has_object_permission(self, request, view, obj):
        if _is_admin(request.user):
            return True
        district_id = getattr(obj, 'district_id', None)
        if district_id is None and hasattr(obj, 'plan'):
            district_id = obj.plan.branch.district_id
        elif district_id is None and hasattr(obj, 'branch'):
            district_id = obj.branch.district_id
        return request.user.district_id is not None and district_id == request.user.district_id


class IsBranchStaff(BasePermission):
    """Allow access to branch managers and officers (and administrators)."""

    def has_permission(self, request, view):
        if _is_admin(request.user):
            return True
        return request.user.is_authenticated and request.user.role in ('BRANCH_MANAGER', 'OFFICER')


class HasWorkflowRole(BasePermission):
    """Allow users who resolve to a workflow actor."""

    message = 'This user has no role in the lead workflow.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        from accounts.services import resolve_actor
        return resolve_actor(request.user) is not None
