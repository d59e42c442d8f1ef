"""
Role checks applied before mutating operations.

Identity and login live outside this package; callers pass in a policy
built from whoever is already authenticated.
"""

from enum import Enum
from typing import FrozenSet, Protocol

from ..domain.exceptions import PermissionDeniedError


class Role(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class Action(str, Enum):
    FIND = "find"
    BOOK = "book"
    FORCE_BOOK = "force_book"
    CANCEL = "cancel"
    MANAGE_MEMBERS = "manage_members"
    CONFIGURE = "configure"


STUDENT_ACTIONS: FrozenSet[Action] = frozenset({Action.FIND, Action.BOOK})


class AccessPolicy(Protocol):
    def check(self, action: Action) -> None:
        """Raise PermissionDeniedError if the action is not allowed."""


class AllowAllPolicy:
    """Policy for trusted callers such as the local CLI."""

    def check(self, action: Action) -> None:
        return None


class RoleAccessPolicy:
    """Admins may do anything; students may only search and book."""

    def __init__(self, role: Role):
        self.role = role

    def check(self, action: Action) -> None:
        if self.role is Role.ADMIN:
            return
        if action not in STUDENT_ACTIONS:
            raise PermissionDeniedError(
                f"Role '{self.role.value}' is not allowed to {action.value.replace('_', ' ')}"
            )
