from rest_framework import permissions

from accounts.context import CallerContext
from accounts.models import User


def caller_context(request) -> CallerContext:
    """Build (once per request) the caller context from the authenticated user."""
    ctx = getattr(request, '_caller_context', None)
    if ctx is None:
        ctx = CallerContext.from_user(request.user)
        request._caller_context = ctx
    return ctx


class _CollegeRolePermission(permissions.BasePermission):
    allowed_roles = ()
    message = 'You are not allowed to manage this college.'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if user.role not in self.allowed_roles:
            return False
        # a role without a resolved college has nothing to act on
        return caller_context(request).college_id is not None


class IsCollegeAdmin(_CollegeRolePermission):
    """Roster management: the admin of the caller's own college only."""

    allowed_roles = (User.Role.COLLEGE_ADMIN,)


class IsCollegeStaff(_CollegeRolePermission):
    """Attendance marking and reading: college admins and teachers."""

    allowed_roles = (User.Role.COLLEGE_ADMIN, User.Role.TEACHER)
    message = 'Only college admins and teachers can access attendance.'


class IsCollegeStudent(_CollegeRolePermission):
    """Read-only access to the caller's own attendance."""

    allowed_roles = (User.Role.STUDENT,)
    message = 'Only students can access their own attendance.'
