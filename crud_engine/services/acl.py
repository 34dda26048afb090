from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

QUERY = "query"
READ = "read"
CREATE = "create"
UPDATE = "update"
DELETE = "delete"
CRUD_ACTIONS = frozenset({QUERY, READ, CREATE, UPDATE, DELETE})


class ACL(ABC):
    """Authorization predicates, one per lifecycle point. Must not mutate anything."""

    @abstractmethod
    def can_create(self, item: Any) -> bool: ...

    @abstractmethod
    def can_read_one(self, item: Any) -> bool: ...

    @abstractmethod
    def can_read_many(self) -> bool: ...

    @abstractmethod
    def can_update(self, old: Any, new: Any) -> bool: ...

    @abstractmethod
    def can_delete(self, item: Any) -> bool: ...


class DefaultACL(ACL):
    def can_create(self, item: Any) -> bool:
        return True

    def can_read_one(self, item: Any) -> bool:
        return True

    def can_read_many(self) -> bool:
        return True

    def can_update(self, old: Any, new: Any) -> bool:
        return True

    def can_delete(self, item: Any) -> bool:
        return True


# Fallback when a resource has no entry in the per-resource table.
DEFAULT_ROLE_ACTIONS: dict[str, set[str]] = {
    "ADMIN": set(CRUD_ACTIONS),
    "VIEWER": {QUERY, READ},
}


class RoleACL(ACL):
    """Grants actions by the principal's role.

    ``role_actions`` maps resource -> role -> actions. A resource missing from
    it falls back to ``default_role_actions``. Without a principal nothing is
    allowed.
    """

    def __init__(
        self,
        principal: dict | None,
        resource: str,
        role_actions: dict[str, dict[str, set[str]]] | None = None,
        default_role_actions: dict[str, set[str]] | None = None,
    ):
        self.principal = principal
        self.resource = resource
        self.role_actions = role_actions or {}
        self.default_role_actions = DEFAULT_ROLE_ACTIONS if default_role_actions is None else default_role_actions

    @property
    def role(self) -> str:
        if not self.principal:
            return ""
        return str(self.principal.get("role") or "").strip().upper()

    def allowed_actions(self) -> set[str]:
        if not self.role:
            return set()
        per_resource = self.role_actions.get(self.resource)
        if per_resource is not None:
            return set(per_resource.get(self.role, set()))
        return set(self.default_role_actions.get(self.role, set()))

    def _allows(self, action: str) -> bool:
        return action in self.allowed_actions()

    def can_create(self, item: Any) -> bool:
        return self._allows(CREATE)

    def can_read_one(self, item: Any) -> bool:
        return self._allows(READ)

    def can_read_many(self) -> bool:
        return self._allows(QUERY)

    def can_update(self, old: Any, new: Any) -> bool:
        return self._allows(UPDATE)

    def can_delete(self, item: Any) -> bool:
        return self._allows(DELETE)
