"""
Google sign-in (authorization code flow).

The state parameter is a random token kept in the cache for
``OAUTH_STATE_TTL`` seconds and consumed on the callback.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import requests
from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

from care.models import OAuthAccount, User

logger = logging.getLogger(__name__)

PROVIDER = 'google'
AUTHORIZE_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_URL = 'https://oauth2.googleapis.com/token'
USERINFO_URL = 'https://openidconnect.googleapis.com/v1/userinfo'
STATE_KEY = 'oauth:state:{}'


class OAuthError(RuntimeError):
    pass


@dataclass
class GoogleProfile:
    subject: str
    email: str
    email_verified: bool = False
    given_name: str = ''
    family_name: str = ''


def _require_enabled() -> None:
    if not settings.GOOGLE_OAUTH_ENABLE:
        raise OAuthError('Google sign-in not enabled on server')


def authorization_url() -> str:
    """Build the Google consent URL and remember its state."""
    _require_enabled()
    state = secrets.token_urlsafe(24)
    cache.set(STATE_KEY.format(state), True, timeout=settings.OAUTH_STATE_TTL)
    params = {
        'client_id': settings.GOOGLE_OAUTH_CLIENT_ID,
        'redirect_uri': settings.GOOGLE_OAUTH_REDIRECT_URI,
        'response_type': 'code',
        'scope': 'openid email profile',
        'state': state,
        'prompt': 'select_account',
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def consume_state(state: Optional[str]) -> bool:
    if not state:
        return False
    key = STATE_KEY.format(state)
    if cache.get(key) is None:
        return False
    cache.delete(key)
    return True


def exchange_code(code: str) -> GoogleProfile:
    """Trade an authorization code for the signed-in Google profile."""
    _require_enabled()
    r = requests.post(TOKEN_URL, data={
        'code': code,
        'client_id': settings.GOOGLE_OAUTH_CLIENT_ID,
        'client_secret': settings.GOOGLE_OAUTH_CLIENT_SECRET,
        'redirect_uri': settings.GOOGLE_OAUTH_REDIRECT_URI,
        'grant_type': 'authorization_code',
    }, timeout=settings.GOOGLE_OAUTH_TIMEOUT)
    r.raise_for_status()
    token = r.json()
    access_token = token.get('access_token')
    if not access_token:
        raise OAuthError(f"Google error: {token.get('error_description') or token.get('error') or 'no access_token'}")

    r = requests.get(USERINFO_URL, headers={'Authorization': f'Bearer {access_token}'},
                     timeout=settings.GOOGLE_OAUTH_TIMEOUT)
    r.raise_for_status()
    info = r.json()
    if not info.get('sub') or not info.get('email'):
        raise OAuthError('Invalid response from Google: missing sub/email')
    return GoogleProfile(
        subject=info['sub'],
        email=info['email'],
        email_verified=bool(info.get('email_verified')),
        given_name=info.get('given_name', ''),
        family_name=info.get('family_name', ''),
    )


@transaction.atomic
def bind_or_create_user(profile: GoogleProfile, *, request_ip: Optional[str] = None):
    """Return ``(user, is_new)`` for a Google profile.

    A known subject signs into its bound user; otherwise a verified email
    links to the existing account with that email, or a new untyped user
    is created (onboarding follows).
    """
    now = timezone.now()
    account = OAuthAccount.objects.select_related('user').filter(provider=PROVIDER, subject=profile.subject).first()
    if account is not None:
        account.email = profile.email
        account.last_login_at = now
        account.last_login_ip = request_ip
        account.save(update_fields=['email', 'last_login_at', 'last_login_ip'])
        return account.user, False

    is_new = False
    user = User.objects.filter(email__iexact=profile.email).first()
    if user is not None and not profile.email_verified:
        raise OAuthError('Google email is not verified; sign in with your password instead')
    if user is None:
        user = User.objects.create_user(
            email=profile.email,
            first_name=profile.given_name,
            last_name=profile.family_name,
        )
        user.set_unusable_password()
        user.save(update_fields=['password'])
        is_new = True
        logger.info("created user %s from google sign-in", user.id)
    OAuthAccount.objects.create(
        user=user, provider=PROVIDER, subject=profile.subject, email=profile.email,
        last_login_at=now, last_login_ip=request_ip,
    )
    return user, is_new
