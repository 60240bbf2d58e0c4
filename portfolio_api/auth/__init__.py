"""Authentication / authorization.

Auth stays lightweight:

- `users` collection (username / password hash / role / active flag)
- JWT access tokens sent as `Authorization: Bearer <token>`

Every route declares a `RouteAccess` record (`PUBLIC`, `AUTHENTICATED`, `ADMIN_ONLY`)
and depends on `guard(access)`, which runs authentication and then role
authorization.
"""

from .crud import CredentialService, bootstrap_admin_if_needed, create_user
from .deps import ADMIN_ONLY, AUTHENTICATED, PUBLIC, RouteAccess, guard

__all__ = [
    "ADMIN_ONLY",
    "AUTHENTICATED",
    "PUBLIC",
    "RouteAccess",
    "guard",
    "CredentialService",
    "bootstrap_admin_if_needed",
    "create_user",
]
