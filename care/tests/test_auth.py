import pytest
from django.conf import settings as django_settings
from django.core.cache import cache

from care.models import AuditEvent, ListMembership, ListPermission, OAuthAccount, User, UserType
from care.services import oauth
from care.tests.helpers import PASSWORD, bearer, make_user

pytestmark = pytest.mark.django_db


def sign_up(api, email='new@example.com', password=PASSWORD):
    return api.post('/api/auth/sign-up', {'email': email, 'password': password,
                                          'firstName': 'New', 'lastName': 'Person'}, format='json')


def test_sign_up_creates_untyped_user(api):
    res = sign_up(api, email='New@Example.com')
    assert res.status_code == 201, res.content
    body = res.json()
    assert body['ok'] is True
    assert body['userType'] is None
    assert body['redirect'] == '/onboarding'
    assert body['jwt_access'] and body['jwt_refresh']
    assert django_settings.AUTH_COOKIE_ACCESS in res.cookies

    user = User.objects.get(email='new@example.com')
    assert user.user_type is None
    assert user.check_password(PASSWORD)


def test_sign_up_rejects_duplicate_email(api):
    make_user('taken@example.com')
    res = sign_up(api, email='taken@example.com')
    assert res.status_code == 400
    assert res.json()['ok'] is False


def test_sign_up_rejects_weak_password(api):
    res = sign_up(api, password='123')
    assert res.status_code == 400
    assert not User.objects.filter(email='new@example.com').exists()


def test_sign_in_returns_role_redirect(api, patient_user):
    res = api.post('/api/auth/sign-in', {'email': 'PAT@example.com', 'password': PASSWORD}, format='json')
    assert res.status_code == 200, res.content
    body = res.json()
    assert body['userType'] == UserType.PATIENT
    assert body['redirect'] == '/patient'
    assert AuditEvent.objects.filter(action='sign_in', user=patient_user).exists()


def test_sign_in_with_wrong_password(api, patient_user):
    res = api.post('/api/auth/sign-in', {'email': 'pat@example.com', 'password': 'wrong'}, format='json')
    assert res.status_code == 400
    assert res.json()['detail'] == 'Invalid email or password'


def test_session_requires_authentication(api):
    res = api.get('/api/auth/session')
    assert res.status_code == 401


def test_session_reports_profile(api, doctor_user):
    res = bearer(api, doctor_user).get('/api/auth/session')
    assert res.status_code == 200
    body = res.json()
    assert body['user']['email'] == 'doc@example.com'
    assert body['profile']['licenseNumber'] == 'LIC-1'
    assert body['redirect'] == '/doctor'


def test_onboarding_patient_gets_managed_task_list(api):
    tokens = sign_up(api).json()
    api.cookies.clear()
    api.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")

    options = api.get('/onboarding')
    assert options.status_code == 200
    assert options.json()['completed'] is False

    res = api.post('/onboarding', {
        'userType': UserType.PATIENT,
        'firstName': 'Pat',
        'lastName': 'Smith',
        'cancerStage': 'STAGE_II',
    }, format='json')
    assert res.status_code == 201, res.content
    body = res.json()
    assert body['userType'] == UserType.PATIENT
    assert body['redirect'] == '/patient'
    assert body['profile']['cancerStage'] == 'STAGE_II'

    user = User.objects.get(email='new@example.com')
    assert user.user_type == UserType.PATIENT
    membership = ListMembership.objects.get(user=user)
    assert membership.permission == ListPermission.MANAGER
    assert membership.task_list.patient.user_id == user.id


def test_onboarding_requires_type_specific_fields(api):
    user = make_user('fresh@example.com')
    res = bearer(api, user).post('/onboarding', {
        'userType': UserType.DOCTOR, 'firstName': 'Dee', 'lastName': 'Oc',
    }, format='json')
    assert res.status_code == 400
    user.refresh_from_db()
    assert user.user_type is None


def test_onboarding_twice_is_rejected(api, doctor_user):
    res = bearer(api, doctor_user).post('/onboarding', {
        'userType': UserType.CARETAKER, 'firstName': 'A', 'lastName': 'B',
        'relationshipToPatient': 'FAMILY',
    }, format='json')
    assert res.status_code == 400
    doctor_user.refresh_from_db()
    assert doctor_user.user_type == UserType.DOCTOR


def test_refresh_picks_up_new_user_type(api):
    tokens = sign_up(api).json()
    user = User.objects.get(email='new@example.com')
    user.user_type = UserType.CARETAKER
    user.save(update_fields=['user_type'])

    res = api.post('/api/auth/refresh', {'refresh': tokens['jwt_refresh']}, format='json')
    assert res.status_code == 200
    assert res.json()['userType'] == UserType.CARETAKER


def test_refresh_with_garbage_token(api):
    res = api.post('/api/auth/refresh', {'refresh': 'garbage'}, format='json')
    assert res.status_code == 401


def test_sign_out_blacklists_refresh_token(api, patient_user):
    tokens = api.post('/api/auth/sign-in', {'email': 'pat@example.com', 'password': PASSWORD},
                      format='json').json()
    api.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['jwt_access']}")

    res = api.post('/api/auth/sign-out', {'refresh': tokens['jwt_refresh']}, format='json')
    assert res.status_code == 200
    assert res.json()['blacklisted'] == 1

    api.credentials()
    api.cookies.clear()
    res = api.post('/api/auth/refresh', {'refresh': tokens['jwt_refresh']}, format='json')
    assert res.status_code == 401


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self.payload


@pytest.fixture
def google(settings, monkeypatch):
    settings.GOOGLE_OAUTH_ENABLE = True
    settings.GOOGLE_OAUTH_CLIENT_ID = 'client'
    settings.GOOGLE_OAUTH_CLIENT_SECRET = 'secret'
    settings.GOOGLE_OAUTH_REDIRECT_URI = 'http://testserver/api/auth/oauth/google/callback'
    userinfo = {'sub': 'google-123', 'email': 'g@example.com', 'email_verified': True,
                'given_name': 'Gee', 'family_name': 'Oogle'}
    monkeypatch.setattr(oauth.requests, 'post', lambda *a, **kw: FakeResponse({'access_token': 'at'}))
    monkeypatch.setattr(oauth.requests, 'get', lambda *a, **kw: FakeResponse(userinfo))
    return userinfo


def _state():
    cache.set(oauth.STATE_KEY.format('s1'), True)
    return 's1'


def test_google_start_disabled(api, settings):
    settings.GOOGLE_OAUTH_ENABLE = False
    res = api.get('/api/auth/oauth/google')
    assert res.status_code == 400


def test_google_start_redirects_with_state(api, google):
    res = api.get('/api/auth/oauth/google')
    assert res.status_code == 302
    assert res['Location'].startswith(oauth.AUTHORIZE_URL)
    assert 'state=' in res['Location']


def test_google_callback_creates_untyped_user(api, google):
    res = api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': _state()})
    assert res.status_code == 302
    assert res['Location'] == '/onboarding'
    assert django_settings.AUTH_COOKIE_ACCESS in res.cookies

    user = User.objects.get(email='g@example.com')
    assert user.user_type is None
    assert not user.has_usable_password()
    assert OAuthAccount.objects.filter(user=user, subject='google-123').exists()


def test_google_callback_rejects_unknown_state(api, google):
    res = api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': 'forged'})
    assert res.status_code == 400
    assert not User.objects.filter(email='g@example.com').exists()


def test_google_state_is_single_use(api, google):
    state = _state()
    assert api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': state}).status_code == 302
    assert api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': state}).status_code == 400


def test_google_callback_links_existing_verified_account(api, google, doctor_user):
    google['email'] = 'doc@example.com'
    res = api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': _state()})
    assert res.status_code == 302
    assert res['Location'] == '/doctor'
    assert OAuthAccount.objects.get(subject='google-123').user_id == doctor_user.id


def test_google_callback_refuses_unverified_email_takeover(api, google, doctor_user):
    google.update(email='doc@example.com', email_verified=False)
    res = api.get('/api/auth/oauth/google/callback', {'code': 'c', 'state': _state()})
    assert res.status_code == 400
    assert not OAuthAccount.objects.exists()
