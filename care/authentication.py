"""
JWT authentication and session token helpers.

Access tokens are accepted from the ``Authorization: Bearer`` header
(API clients) or from the HTTP-only access cookie set on sign-in (page
requests).  Keeping this module free of view imports avoids circular
imports when DRF loads authentication classes at start-up.
"""
from __future__ import annotations

from typing import Optional

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

USER_TYPE_CLAIM = 'user_type'


class JWTCookieAuthentication(JWTAuthentication):
    """simplejwt authentication that falls back to the access cookie."""

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            return super().authenticate(request)
        raw_token = request.COOKIES.get(settings.AUTH_COOKIE_ACCESS)
        if not raw_token:
            return None
        validated_token = self.get_validated_token(raw_token.encode())
        return self.get_user(validated_token), validated_token


def issue_tokens(user) -> RefreshToken:
    """Refresh token for ``user``; its access token inherits the ``user_type`` claim."""
    refresh = RefreshToken.for_user(user)
    refresh[USER_TYPE_CLAIM] = user.user_type
    return refresh


def token_payload(refresh: RefreshToken) -> dict:
    return {
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
    }


def set_auth_cookies(response, refresh: RefreshToken):
    common = {
        'httponly': True,
        'secure': settings.AUTH_COOKIE_SECURE,
        'samesite': settings.AUTH_COOKIE_SAMESITE,
    }
    access_lifetime = settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME']
    refresh_lifetime = settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME']
    response.set_cookie(settings.AUTH_COOKIE_ACCESS, str(refresh.access_token),
                        max_age=int(access_lifetime.total_seconds()), **common)
    response.set_cookie(settings.AUTH_COOKIE_REFRESH, str(refresh),
                        max_age=int(refresh_lifetime.total_seconds()), **common)
    return response


def clear_auth_cookies(response):
    response.delete_cookie(settings.AUTH_COOKIE_ACCESS)
    response.delete_cookie(settings.AUTH_COOKIE_REFRESH)
    return response


def raw_access_token(request) -> Optional[str]:
    """Access token from the Bearer header or the access cookie, unvalidated."""
    header = request.META.get('HTTP_AUTHORIZATION', '')
    parts = header.split()
    if len(parts) == 2 and parts[0] in settings.SIMPLE_JWT['AUTH_HEADER_TYPES']:
        return parts[1]
    return request.COOKIES.get(settings.AUTH_COOKIE_ACCESS) or None


def decode_access_token(raw: Optional[str]) -> Optional[AccessToken]:
    """Validated access token, or ``None`` when missing, expired or forged."""
    if not raw:
        return None
    try:
        return AccessToken(raw)
    except (TokenError, InvalidToken):
        return None
