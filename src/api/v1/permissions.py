"""Custom DRF permissions for the sales-operations API."""
from rest_framework.permissions import BasePermission


class IsManagerOrAdmin(BasePermission):
    """Allow access to superusers and users with the ADMIN or MANAGER role."""

    message = "Manager or admin privileges are required."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return bool(getattr(user, "can_view_team_analytics", False))


class IsManagerOrAdminForWrites(IsManagerOrAdmin):
    """Read access for any authenticated user; writes need a manager or admin."""

    SAFE_METHODS = ("GET", "HEAD", "OPTIONS")

    def has_permission(self, request, view):
        if request.method in self.SAFE_METHODS:
            return bool(request.user and request.user.is_authenticated)
        return super().has_permission(request, view)
