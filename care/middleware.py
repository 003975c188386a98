"""
Role-based routing for page requests.

The middleware looks only at the access token (Bearer header or access
cookie) and its ``user_type`` claim; it never hits the database.

* no valid token: protected role prefixes redirect to ``/sign-in``;
* valid token without a known ``user_type``: redirect to ``/onboarding``
  except for the onboarding, sign-in/up, API and infrastructure paths;
* typed user on another role's prefix: redirect to the user's own prefix.

Everything else passes through.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.http import HttpResponseRedirect

from care.authentication import USER_TYPE_CLAIM, decode_access_token, raw_access_token
from care.models import UserType

logger = logging.getLogger(__name__)

ROLE_PREFIXES = {
    UserType.PATIENT: '/patient',
    UserType.CARETAKER: '/caretaker',
    UserType.DOCTOR: '/doctor',
    UserType.MEDICAL_STAFF: '/medical-staff',
    UserType.ADMIN: '/admin',
}

SIGN_IN_PATH = '/sign-in'
ONBOARDING_PATH = '/onboarding'

# reachable while untyped so onboarding can complete
UNTYPED_ALLOWED_PREFIXES = (
    ONBOARDING_PATH, '/api', '/healthz', '/metrics', '/swagger', '/redoc',
    '/django-admin', '/static', '/ws',
)
UNTYPED_ALLOWED_STARTS = ('/sign-',)


def matches_prefix(path: str, prefix: str) -> bool:
    """Segment-wise prefix match: ``/admin`` matches ``/admin/x`` but not ``/administrator``."""
    return path == prefix or path.startswith(prefix + '/')


def protected_owner(path: str) -> Optional[str]:
    """The user type whose prefix ``path`` falls under, if any."""
    for user_type, prefix in ROLE_PREFIXES.items():
        if matches_prefix(path, prefix):
            return user_type
    return None


def untyped_may_pass(path: str) -> bool:
    if any(matches_prefix(path, p) for p in UNTYPED_ALLOWED_PREFIXES):
        return True
    return path.startswith(UNTYPED_ALLOWED_STARTS)


def route(path: str, token_claims: Optional[dict]) -> Optional[str]:
    """Where to redirect ``path`` for the given token claims; ``None`` to pass."""
    owner = protected_owner(path)
    if token_claims is None:
        return SIGN_IN_PATH if owner else None

    user_type = token_claims.get(USER_TYPE_CLAIM)
    if user_type not in ROLE_PREFIXES:
        return None if untyped_may_pass(path) else ONBOARDING_PATH

    if owner and owner != user_type:
        return ROLE_PREFIXES[user_type]
    return None


class RoleRouterMiddleware:
    """Redirect page requests between role areas, onboarding and sign-in."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or '/'
        token = decode_access_token(raw_access_token(request))
        claims = dict(token.payload) if token is not None else None
        target = route(path, claims)
        if target is not None and target != path:
            logger.debug("role router: %s -> %s", path, target)
            return HttpResponseRedirect(target)
        return self.get_response(request)
