"""Request identity: who the request belongs to, and with which role.

Identity verification is done by the authentication backends (SimpleJWT
for local users, Auth0 for federated ones).  The domain only ever sees the
resulting opaque ``user_id`` string and a coarse role.
"""

from __future__ import annotations

from dataclasses import dataclass

from rest_framework.permissions import BasePermission
from rest_framework.request import Request

ROLE_ADMIN = "admin"
ROLE_USER = "user"

# Auth0 permission that grants the admin role
ADMIN_PERMISSION = "orders:manage"


@dataclass(frozen=True)
class RequestIdentity:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def identity_from_request(request: Request) -> RequestIdentity:
    """Build the identity of an authenticated request.

    Auth0 users are identified by their ``sub`` claim, local Django users
    by their primary key.
    """
    user = request.user
    sub = getattr(user, "sub", None)
    if sub:
        permissions = getattr(user, "permissions", [])
        role = ROLE_ADMIN if ADMIN_PERMISSION in permissions else ROLE_USER
        return RequestIdentity(user_id=sub, role=role)
    role = ROLE_ADMIN if getattr(user, "is_staff", False) else ROLE_USER
    return RequestIdentity(user_id=str(user.pk), role=role)


class HasAdminRole(BasePermission):
    """Allow only authenticated requests carrying the admin role."""

    def has_permission(self, request, view) -> bool:
        if not (request.user and request.user.is_authenticated):
            return False
        return identity_from_request(request).is_admin
