from __future__ import annotations

from typing import Dict, Iterable, Optional

from app.models.enums import Role


ROLE_CAPABILITIES: dict[Role, Dict[str, bool]] = {
    Role.ADMIN: {
        "upload_assignment": False,
        "submit_assignment": False,
        "review_assignment": False,
        "approve_assignment": False,
        "reject_assignment": False,
        "forward_assignment": False,
        "manage_departments": True,
        "manage_users": True,
    },
    Role.STUDENT: {
        "upload_assignment": True,
        "submit_assignment": True,
        "review_assignment": False,
        "approve_assignment": False,
        "reject_assignment": False,
        "forward_assignment": False,
        "manage_departments": False,
        "manage_users": False,
    },
    Role.PROFESSOR: {
        "upload_assignment": True,
        "submit_assignment": True,
        "review_assignment": True,
        "approve_assignment": True,
        "reject_assignment": True,
        "forward_assignment": True,
        "manage_departments": False,
        "manage_users": False,
    },
    Role.HOD: {
        "upload_assignment": True,
        "submit_assignment": True,
        "review_assignment": True,
        "approve_assignment": True,
        "reject_assignment": True,
        "forward_assignment": True,
        "manage_departments": False,
        "manage_users": False,
    },
}

CAPABILITIES = frozenset(ROLE_CAPABILITIES[Role.ADMIN])


def _coerce_role(value: Role | str | None) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper())
    except ValueError:
        return None


def get_capabilities(role: Role | str | None) -> Dict[str, bool]:
    coerced = _coerce_role(role)
    if coerced is None:
        return {key: False for key in CAPABILITIES}
    return dict(ROLE_CAPABILITIES.get(coerced, {}))


def permits(role: Role | str | None, capability: str) -> bool:
    """Return True when ``role`` is granted ``capability``."""
    if capability not in CAPABILITIES:
        raise KeyError(f"Unknown capability: {capability}")
    return get_capabilities(role).get(capability, False)


def roles_with(capability: str) -> list[Role]:
    return [role for role in ROLE_CAPABILITIES if permits(role, capability)]


def user_has_any_role(user, roles: Iterable[Role]) -> bool:
    return _coerce_role(getattr(user, "role", None)) in set(roles)
