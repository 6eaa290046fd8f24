# Overview: Pytest coverage for the health endpoint and CLI wiring.

from stockroom.extensions import db
from stockroom.models import User


def test_health(client, db_session):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json['checks']['database']['status'] == 'healthy'


def test_cors_header_for_allowed_origin(client, db_session):
    response = client.get('/health', headers={'Origin': 'http://localhost:5173'})
    assert response.headers['Access-Control-Allow-Origin'] == 'http://localhost:5173'

    other = client.get('/health', headers={'Origin': 'http://evil.example'})
    assert 'Access-Control-Allow-Origin' not in other.headers


def test_cli_create_user(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        'users', 'create',
        '--full-name', 'Cli User',
        '--username', 'cli',
        '--email', 'cli@example.com',
        '--password', 'secret',
    ])
    assert result.exit_code == 0, result.output
    assert 'Created user cli' in result.output
    assert db.session.query(User).filter_by(username='cli').count() == 1

    duplicate = app.test_cli_runner().invoke(args=[
        'users', 'create',
        '--full-name', 'Cli User',
        '--username', 'cli',
        '--email', 'cli@example.com',
        '--password', 'secret',
    ])
    assert duplicate.exit_code != 0
