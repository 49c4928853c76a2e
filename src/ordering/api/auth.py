"""Principal forwarded by the upstream authentication layer.

Authentication happens before requests reach this service; the gateway puts
the authenticated user's identifier in ``X-Authenticated-User``. It is only
recorded as the actor of order operations.
"""

from fastapi import Header


def current_principal(x_authenticated_user: str = Header(default="")) -> str | None:
    principal = x_authenticated_user.strip()
    return principal or None
