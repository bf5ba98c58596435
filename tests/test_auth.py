"""
Authentication tests
Signup, login, token validation and the current-user endpoint
"""
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest


SIGNUP = {
    'name': 'Meera',
    'email': 'Meera@Campus.edu',
    'phone': '+91 98765 43210',
    'password': 'SecurePass123',
    'college_id': 'CS-2021-044',
}


class TestSignup:
    """Test user registration"""

    def test_signup_success(self, client):
        response = client.post('/api/auth/signup', json=SIGNUP)

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data['user']['email'] == 'meera@campus.edu'
        assert data['user']['wallet_balance'] == 0
        assert 'password_hash' not in data['user']
        assert 'token' in data

    def test_signup_duplicate_email(self, client, requester):
        response = client.post('/api/auth/signup', json={**SIGNUP, 'email': requester.email})

        assert response.status_code == 409
        assert 'already exists' in json.loads(response.data)['error']

    @pytest.mark.parametrize('field', ['name', 'email', 'phone', 'password'])
    def test_signup_missing_field(self, client, field):
        body = dict(SIGNUP)
        del body[field]

        response = client.post('/api/auth/signup', json=body)

        assert response.status_code == 400

    def test_signup_invalid_email(self, client):
        response = client.post('/api/auth/signup', json={**SIGNUP, 'email': 'not-an-email'})

        assert response.status_code == 400

    def test_signup_invalid_phone(self, client):
        response = client.post('/api/auth/signup', json={**SIGNUP, 'phone': '12ab'})

        assert response.status_code == 400

    def test_signup_weak_password(self, client):
        response = client.post('/api/auth/signup', json={**SIGNUP, 'password': '123'})

        assert response.status_code == 400


class TestLogin:
    """Test login"""

    def test_login_success(self, client, user_factory):
        user = user_factory(email='login@campus.edu', password='CorrectHorse1')

        response = client.post('/api/auth/login', json={'email': 'LOGIN@campus.edu', 'password': 'CorrectHorse1'})

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['user']['id'] == user.id
        assert 'token' in data

    def test_login_wrong_password(self, client, user_factory):
        user_factory(email='login@campus.edu', password='CorrectHorse1')

        response = client.post('/api/auth/login', json={'email': 'login@campus.edu', 'password': 'wrong'})

        assert response.status_code == 401

    def test_login_unknown_email(self, client):
        response = client.post('/api/auth/login', json={'email': 'nobody@campus.edu', 'password': 'whatever'})

        assert response.status_code == 401

    def test_login_missing_fields(self, client):
        response = client.post('/api/auth/login', json={})

        assert response.status_code == 400


class TestTokens:
    """Test JWT validation"""

    def test_me_with_valid_token(self, client, requester, auth_headers):
        response = client.get('/api/auth/me', headers=auth_headers(requester))

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['user']['id'] == requester.id
        assert 'wallet_balance' in data['user']

    def test_me_without_token(self, client):
        response = client.get('/api/auth/me')

        assert response.status_code == 401
        assert json.loads(response.data)['code'] == 'unauthenticated'

    def test_expired_token(self, app, client, requester):
        token = jwt.encode({
            'user_id': requester.id,
            'exp': datetime.now(timezone.utc) - timedelta(hours=1),
        }, app.config['JWT_SECRET'], algorithm='HS256')

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401

    def test_token_signed_with_other_secret(self, client, requester):
        token = jwt.encode({
            'user_id': requester.id,
            'exp': datetime.now(timezone.utc) + timedelta(hours=1),
        }, 'some-other-secret', algorithm='HS256')

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401

    def test_token_for_deleted_user(self, app, client):
        token = jwt.encode({
            'user_id': 'gone',
            'exp': datetime.now(timezone.utc) + timedelta(hours=1),
        }, app.config['JWT_SECRET'], algorithm='HS256')

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401
