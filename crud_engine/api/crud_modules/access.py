from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from crud_engine.core.deps import get_optional_principal
from crud_engine.db.session import get_db
from crud_engine.services.acl import RoleACL
from crud_engine.services.hooks import AuditHooks


def _actor(principal: dict | None) -> str | None:
    if not principal:
        return None
    email = str(principal.get("email") or "").strip()
    return email or str(principal.get("sub") or "").strip() or None


def role_acl(
    resource: str,
    role_actions: dict[str, dict[str, set[str]]] | None = None,
    default_role_actions: dict[str, set[str]] | None = None,
):
    """ACL provider granting actions by the bearer token's role."""

    def _provider(principal: dict | None = Depends(get_optional_principal)) -> RoleACL:
        return RoleACL(principal, resource, role_actions, default_role_actions)

    return _provider


def audit_hooks(resource: str):
    """Hooks provider writing audit rows attributed to the bearer token's subject."""

    def _provider(
        db: Session = Depends(get_db),
        principal: dict | None = Depends(get_optional_principal),
    ) -> AuditHooks:
        return AuditHooks(db, resource, actor=_actor(principal))

    return _provider
