"""
Role- and enrollment-scoped access decisions for course-owned resources (courses, modules, activities, rosters).

Pure functions of (caller, target) -> Decision; no database access. Routers resolve the caller (identity and
roles from the token, enrollment looked up fresh per request) and the target's owning course, call one of
these, and hand the Decision to api.deps.enforce.

Ordering is the same everywhere: authentication, then existence, then role/enrollment.
"""
import enum
from dataclasses import dataclass

from lms_api.models.role import RoleName


class Verdict(str, enum.Enum):
    ALLOW = "allow"
    ALLOW_FILTERED = "allow_filtered"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Caller:
    """Authenticated principal. course_id comes from the users table, never from the token."""
    user_id: str
    roles: frozenset[RoleName]
    course_id: int | None = None

    @property
    def is_teacher(self) -> bool:
        return RoleName.TEACHER in self.roles

    @property
    def is_student(self) -> bool:
        return RoleName.STUDENT in self.roles and not self.is_teacher


@dataclass(frozen=True)
class Decision:
    verdict: Verdict
    # ALLOW_FILTERED: restrict rows to this course and/or drop this user id
    course_id: int | None = None
    exclude_user_id: str | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict in (Verdict.ALLOW, Verdict.ALLOW_FILTERED)


ALLOW = Decision(Verdict.ALLOW)
FORBIDDEN = Decision(Verdict.FORBIDDEN)
NOT_FOUND = Decision(Verdict.NOT_FOUND)
UNAUTHENTICATED = Decision(Verdict.UNAUTHENTICATED)


def _precheck(caller: Caller | None, exists: bool) -> Decision | None:
    if caller is None:
        return UNAUTHENTICATED
    if not exists:
        return NOT_FOUND
    if not (caller.is_teacher or caller.is_student):
        # Authenticated but holds no known role
        return FORBIDDEN
    return None


def can_read(caller: Caller | None, resource_course_id: int | None, exists: bool = True) -> Decision:
    """Read a single course-scoped resource (course, module, activity)."""
    early = _precheck(caller, exists)
    if early is not None:
        return early
    if caller.is_teacher:
        return ALLOW
    if caller.course_id is not None and caller.course_id == resource_course_id:
        return ALLOW
    return FORBIDDEN


def can_mutate(caller: Caller | None, exists: bool = True) -> Decision:
    """Create/update/delete: Teacher only, whatever the caller's enrollment."""
    early = _precheck(caller, exists)
    if early is not None:
        return early
    return ALLOW if caller.is_teacher else FORBIDDEN


def can_list(caller: Caller | None, teacher_only: bool = False) -> Decision:
    """
    Collection endpoints. Teachers see everything; Students get their own course's rows
    (ALLOW_FILTERED with course_id) unless the listing is Teacher only.
    """
    early = _precheck(caller, True)
    if early is not None:
        return early
    if caller.is_teacher:
        return ALLOW
    if teacher_only or caller.course_id is None:
        return FORBIDDEN
    return Decision(Verdict.ALLOW_FILTERED, course_id=caller.course_id)


def can_read_roster(caller: Caller | None, course_id: int, exists: bool = True) -> Decision:
    """Users enrolled in a course. A Student must be enrolled there and never sees their own row."""
    early = _precheck(caller, exists)
    if early is not None:
        return early
    if caller.is_teacher:
        return ALLOW
    if caller.course_id is not None and caller.course_id == course_id:
        return Decision(Verdict.ALLOW_FILTERED, course_id=course_id, exclude_user_id=caller.user_id)
    return FORBIDDEN


def can_read_user(caller: Caller | None, user_id: str, exists: bool = True) -> Decision:
    """A user profile: Teachers read anyone, everybody reads themselves."""
    early = _precheck(caller, exists)
    if early is not None:
        return early
    if caller.is_teacher or caller.user_id == user_id:
        return ALLOW
    return FORBIDDEN
