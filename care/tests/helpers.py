from rest_framework.test import APIClient

from care.authentication import issue_tokens
from care.models import User

PASSWORD = 'Sturdy-Passw0rd!'


def make_user(email, user_type=None, password=PASSWORD, **extra):
    return User.objects.create_user(email=email, password=password, user_type=user_type, **extra)


def bearer(client: APIClient, user: User) -> APIClient:
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_tokens(user).access_token}')
    return client
