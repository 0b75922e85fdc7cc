"""Per-request caller identity handed to the service layer.

Views build a `CallerContext` once from the authenticated user and pass it
(or just its `college_id`) into every service call, so services never read
request state.
"""
from dataclasses import dataclass
from typing import Optional

from accounts.models import User


@dataclass(frozen=True)
class CallerContext:
    user_id: int
    role: str
    college_id: Optional[int] = None

    @classmethod
    def from_user(cls, user) -> 'CallerContext':
        return cls(user_id=user.pk, role=user.role, college_id=resolve_college_id(user))

    @property
    def is_college_admin(self) -> bool:
        return self.role == User.Role.COLLEGE_ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == User.Role.TEACHER


def resolve_college_id(user) -> Optional[int]:
    """Return the tenant college id for `user`, or None for college-independent roles."""
    if user.role == User.Role.COLLEGE_ADMIN:
        college = getattr(user, 'administered_college', None)
        return college.pk if college is not None else None
    if user.role == User.Role.TEACHER:
        profile = getattr(user, 'teacher_profile', None)
        return profile.college_id if profile is not None else None
    if user.role == User.Role.STUDENT:
        profile = getattr(user, 'student_profile', None)
        return profile.college_id if profile is not None else None
    return None
