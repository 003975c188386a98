"""
Authentication views: sign-up, sign-in, sign-out, token refresh, the
session probe, Google sign-in and onboarding.

Every successful sign-in returns the JWT pair in the body and also sets
it as HTTP-only cookies so page requests can be routed by
:class:`care.middleware.RoleRouterMiddleware`.
"""
from __future__ import annotations

import logging

import requests
from django.conf import settings
from django.contrib.auth import authenticate
from django.http import HttpResponseRedirect
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from care.authentication import (
    USER_TYPE_CLAIM,
    clear_auth_cookies,
    issue_tokens,
    set_auth_cookies,
    token_payload,
)
from care.middleware import ONBOARDING_PATH, ROLE_PREFIXES, SIGN_IN_PATH
from care.models import User
from care.serializers.auth import (
    OAuthCallbackSerializer,
    OnboardingSerializer,
    RefreshSerializer,
    SignInSerializer,
    SignUpSerializer,
)
from care.services import oauth
from care.services.audit import log_action
from care.services.profiles import format_profile, format_user, onboard, onboarding_options, profile_for

logger = logging.getLogger(__name__)


def home_path(user: User) -> str:
    """Where a user lands after signing in."""
    return ROLE_PREFIXES.get(user.user_type, ONBOARDING_PATH)


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


def _session_response(user: User, *, status: int = 200, **extra) -> Response:
    refresh = issue_tokens(user)
    payload = {
        'ok': True,
        **token_payload(refresh),
        'userType': user.user_type,
        'redirect': home_path(user),
        'user': format_user(user),
        **extra,
    }
    return set_auth_cookies(Response(payload, status=status), refresh)


# ---------------------------------------------------------------------
# Email / password
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def sign_up_view(request):
    if request.method == 'GET':
        return Response({'ok': True, 'providers': ['google'] if settings.GOOGLE_OAUTH_ENABLE else []})
    s = SignUpSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if User.objects.filter(email__iexact=vd['email']).exists():
        return Response({'ok': False, 'detail': 'An account with this email already exists'}, status=400)
    user = User.objects.create_user(
        email=vd['email'],
        password=vd['password'],
        first_name=vd.get('firstName', ''),
        last_name=vd.get('lastName', ''),
    )
    log_action(user=user, action='sign_up', object_type='user', object_id=user.id,
               detail={'ip': _client_ip(request)})
    return _session_response(user, status=201)

sign_up_view.throttle_scope = 'sign_up'


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def sign_in_view(request):
    if request.method == 'GET':
        return Response({'ok': True, 'providers': ['google'] if settings.GOOGLE_OAUTH_ENABLE else []})
    s = SignInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    user = authenticate(request, username=email, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='sign_in', object_type='user',
                   detail={'result': 'fail', 'email': email, 'ip': _client_ip(request)})
        return Response({'ok': False, 'detail': 'Invalid email or password'}, status=400)
    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    log_action(user=user, action='sign_in', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})
    return _session_response(user)

sign_in_view.throttle_scope = 'sign_in'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def sign_out_view(request):
    """Blacklist the given (or cookie) refresh token, else all of the user's tokens."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    raw = s.validated_data.get('refresh') or request.COOKIES.get(settings.AUTH_COOKIE_REFRESH)
    count = 0
    if raw:
        try:
            RefreshToken(raw).blacklist()
            count = 1
        except TokenError as e:
            logger.info("sign-out with unusable refresh token: %s", e)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='sign_out', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return clear_auth_cookies(Response({'ok': True, 'blacklisted': count, 'redirect': SIGN_IN_PATH}))


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """New access token from a refresh token; ``user_type`` is re-read from the database."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    raw = s.validated_data.get('refresh') or request.COOKIES.get(settings.AUTH_COOKIE_REFRESH)
    if not raw:
        return Response({'ok': False, 'detail': 'Refresh token is required'}, status=400)
    try:
        refresh = RefreshToken(raw)
    except TokenError as e:
        return Response({'ok': False, 'detail': str(e)}, status=401)
    user = User.objects.filter(id=refresh.payload.get('user_id'), is_active=True).first()
    if user is None:
        return Response({'ok': False, 'detail': 'User not found'}, status=401)
    access = refresh.access_token
    access[USER_TYPE_CLAIM] = user.user_type
    resp = Response({'ok': True, 'jwt_access': str(access), 'userType': user.user_type})
    resp.set_cookie(
        settings.AUTH_COOKIE_ACCESS, str(access),
        max_age=int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        httponly=True, secure=settings.AUTH_COOKIE_SECURE, samesite=settings.AUTH_COOKIE_SAMESITE,
    )
    return resp


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_view(request):
    user: User = request.user
    return Response({
        'ok': True,
        'user': format_user(user),
        'profile': format_profile(profile_for(user, user.user_type)),
        'redirect': home_path(user),
    })


# ---------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([AllowAny])
def google_start_view(request):
    try:
        url = oauth.authorization_url()
    except oauth.OAuthError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return HttpResponseRedirect(url)

google_start_view.throttle_scope = 'oauth'


@api_view(['GET'])
@permission_classes([AllowAny])
def google_callback_view(request):
    s = OAuthCallbackSerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    if not oauth.consume_state(s.validated_data['state']):
        return Response({'ok': False, 'detail': 'Invalid or expired OAuth state'}, status=400)

    try:
        profile = oauth.exchange_code(s.validated_data['code'])
        user, is_new = oauth.bind_or_create_user(profile, request_ip=_client_ip(request))
    except oauth.OAuthError as e:
        return Response({'ok': False, 'detail': f'Google sign-in failed: {e}'}, status=400)
    except requests.RequestException as e:
        logger.warning("google token exchange failed: %s", e)
        return Response({'ok': False, 'detail': 'Google sign-in failed'}, status=502)

    log_action(user=user, action='oauth_sign_in', object_type='user', object_id=user.id,
               detail={'provider': oauth.PROVIDER, 'isNew': is_new, 'ip': _client_ip(request)})
    refresh = issue_tokens(user)
    return set_auth_cookies(HttpResponseRedirect(home_path(user)), refresh)

google_callback_view.throttle_scope = 'oauth'


# ---------------------------------------------------------------------
# Onboarding
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def onboarding_view(request):
    user: User = request.user
    if request.method == 'GET':
        return Response({'ok': True, 'completed': bool(user.user_type), 'options': onboarding_options()})
    s = OnboardingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    profile = onboard(user, s.validated_data)
    log_action(user=user, action='onboarding', object_type='user', object_id=user.id,
               detail={'userType': user.user_type})
    # new tokens carry the user_type claim the role router needs
    return _session_response(user, status=201, profile=format_profile(profile))
