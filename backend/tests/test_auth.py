# Overview: Pytest coverage for registration, login and session tokens.

from datetime import timedelta

from stockroom.extensions import db
from stockroom.models import SessionToken, User
from stockroom.services import auth_service, session_service
from stockroom.services.auth_service import verify_password


def _bearer(token):
    return {'Authorization': f'Bearer {token}'}


class TestRegister:
    def test_register_returns_token(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'full_name': 'Grace Brewster Hopper',
            'email': 'grace@example.com',
            'username': 'grace',
            'password': 'cobol',
        })

        assert response.status_code == 201
        body = response.json
        assert body['success'] is True
        assert body['token']
        assert body['user']['first_name'] == 'Grace'
        assert body['user']['last_name'] == 'Brewster Hopper'

        user = db_session.query(User).filter_by(username='grace').one()
        assert user.password_hash != 'cobol'
        assert verify_password('cobol', user.password_hash)

    def test_register_missing_fields(self, client, db_session):
        response = client.post('/api/auth/register', json={'username': 'x'})
        assert response.status_code == 400
        assert 'Missing required fields' in response.json['error']

    def test_duplicate_username_conflicts(self, client, user):
        response = client.post('/api/auth/register', json={
            'full_name': 'Another Alice',
            'email': 'alice2@example.com',
            'username': 'alice',
            'password': 'whatever',
        })
        assert response.status_code == 409


class TestLogin:
    def test_login_success(self, client, user):
        response = client.post('/api/auth/login', json={
            'username': 'alice',
            'password': 'Password123!',
        })
        assert response.status_code == 200
        token = response.json['token']
        assert session_service.validate_session(token).user_id == user.id

    def test_wrong_password(self, client, user):
        response = client.post('/api/auth/login', json={
            'username': 'alice',
            'password': 'nope',
        })
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid username or password.'

    def test_unknown_user_same_message(self, client, db_session):
        response = client.post('/api/auth/login', json={
            'username': 'ghost',
            'password': 'nope',
        })
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid username or password.'

    def test_missing_credentials(self, client, db_session):
        response = client.post('/api/auth/login', json={'username': 'alice'})
        assert response.status_code == 400


class TestTokens:
    def test_protected_route_requires_token(self, client, db_session):
        assert client.get('/api/products').status_code == 401
        assert client.get('/api/products', headers={'Authorization': 'Token abc'}).status_code == 401
        assert client.get('/api/products', headers=_bearer('not-a-real-token')).status_code == 401

    def test_expired_token_rejected(self, client, user, token):
        session = db.session.query(SessionToken).filter_by(user_id=user.id).one()
        session.expires_at = session.created_at - timedelta(seconds=1)
        db.session.commit()

        response = client.get('/api/users/me', headers=_bearer(token))
        assert response.status_code == 401

    def test_check_auth_never_401(self, client, user, token):
        anonymous = client.get('/api/auth/check')
        assert anonymous.status_code == 200
        assert anonymous.json == {'authenticated': False}

        signed_in = client.get('/api/auth/check', headers=_bearer(token))
        assert signed_in.json == {'authenticated': True, 'user_id': user.id}

    def test_logout_revokes(self, client, token, headers):
        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/users/me', headers=headers).status_code == 401
        assert client.post('/api/auth/logout', headers=headers).status_code == 401

    def test_refresh_rotates_token(self, client, headers):
        response = client.post('/api/auth/refresh', headers=headers)
        assert response.status_code == 200
        new_token = response.json['token']

        assert client.get('/api/users/me', headers=headers).status_code == 401
        assert client.get('/api/users/me', headers=_bearer(new_token)).status_code == 200


class TestPasswordChange:
    def test_change_password(self, client, user, headers):
        response = client.put('/api/auth/password', headers=headers, json={
            'old_password': 'Password123!',
            'new_password': 'Different456?',
        })
        assert response.status_code == 200
        new_token = response.json['token']

        # Every earlier session is revoked
        assert client.get('/api/users/me', headers=headers).status_code == 401
        assert client.get('/api/users/me', headers=_bearer(new_token)).status_code == 200

        login = client.post('/api/auth/login', json={'username': 'alice', 'password': 'Different456?'})
        assert login.status_code == 200

    def test_wrong_old_password(self, client, headers):
        response = client.put('/api/auth/password', headers=headers, json={
            'old_password': 'wrong',
            'new_password': 'Different456?',
        })
        assert response.status_code == 400
        assert response.json['error'] == 'Old password is incorrect.'


class TestProfile:
    def test_get_me(self, client, headers):
        response = client.get('/api/users/me', headers=headers)
        assert response.status_code == 200
        assert response.json['user']['username'] == 'alice'
        assert 'password_hash' not in response.json['user']

    def test_update_me(self, client, headers):
        response = client.put('/api/users/me', headers=headers, json={
            'first_name': 'Alicia',
            'last_name': 'Sample',
            'username': 'alicia',
        })
        assert response.status_code == 200
        assert response.json['user']['username'] == 'alicia'
        assert response.json['token']

    def test_update_me_username_taken(self, client, headers, other_user):
        response = client.put('/api/users/me', headers=headers, json={
            'first_name': 'Alice',
            'last_name': 'Example',
            'username': 'bob',
        })
        assert response.status_code == 409

    def test_update_me_requires_all_fields(self, client, headers):
        response = client.put('/api/users/me', headers=headers, json={'first_name': 'Alice'})
        assert response.status_code == 400


class TestUsernameUniqueness:
    """The unique index backs up the lookup done before each write."""

    def _skip_lookup(self, monkeypatch):
        monkeypatch.setattr(auth_service, '_username_taken', lambda *args, **kwargs: False)

    def test_register_race_conflicts(self, client, user, monkeypatch):
        self._skip_lookup(monkeypatch)
        response = client.post('/api/auth/register', json={
            'full_name': 'Alice Again',
            'email': 'again@example.com',
            'username': 'alice',
            'password': 'whatever',
        })
        assert response.status_code == 409
        assert response.json['error'] == 'Username already exists.'
        assert db.session.query(User).filter_by(username='alice').count() == 1

    def test_profile_rename_race_conflicts(self, client, headers, other_user, monkeypatch):
        self._skip_lookup(monkeypatch)
        response = client.put('/api/users/me', headers=headers, json={
            'first_name': 'Alice',
            'last_name': 'Example',
            'username': 'bob',
        })
        assert response.status_code == 409
        assert db.session.query(User).filter_by(username='bob').count() == 1


class TestSingleWordName:
    def test_profile_resubmitted_unchanged(self, client, db_session):
        registered = client.post('/api/auth/register', json={
            'full_name': 'Plato',
            'email': 'plato@example.com',
            'username': 'plato',
            'password': 'forms',
        })
        assert registered.status_code == 201
        user = registered.json['user']
        assert user['last_name'] == ''

        response = client.put('/api/users/me', headers=_bearer(registered.json['token']), json={
            'first_name': user['first_name'],
            'last_name': user['last_name'],
            'username': user['username'],
        })
        assert response.status_code == 200
        assert response.json['user']['last_name'] == ''

    def test_last_name_may_be_omitted(self, client, headers):
        response = client.put('/api/users/me', headers=headers, json={
            'first_name': 'Alice',
            'username': 'alice',
        })
        assert response.status_code == 200
        assert response.json['user']['last_name'] == 'Example'
