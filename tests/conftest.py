"""
Shared pytest fixtures.

Provides:
    - app: Flask application (session-scoped, in-memory SQLite, local blobs)
    - _reset_db: drops and recreates the tables after every test (autouse)
    - ctx: app context for tests that call services directly
    - backend: the app's collaborator handle
    - diretor / equipe: pre-created users (need ctx)
    - make_user / login: helpers for view tests, which run without ctx so
      every request loads the user afresh
"""

import pytest

from config import TestingConfig
from contract_tracker import create_app
from contract_tracker.backend import get_backend
from contract_tracker.constants import Role
from contract_tracker.extensions import db
from contract_tracker.models import User

PASSWORD = 'senha123'


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    upload_dir = tmp_path_factory.mktemp('uploads')

    class Config(TestingConfig):
        UPLOAD_FOLDER = str(upload_dir)

    return create_app(Config)


@pytest.fixture(autouse=True)
def _reset_db(app):
    yield
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield
        db.session.rollback()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def backend(ctx):
    return get_backend()


def _create_user(name, email, role):
    user = User(name=name, email=email, role=role)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def password():
    return PASSWORD


@pytest.fixture()
def diretor(ctx):
    return _create_user('Diretora Ana', 'ana@contratos.com.br', Role.DIRETOR)


@pytest.fixture()
def equipe(ctx):
    return _create_user('Bruno Equipe', 'bruno@contratos.com.br', Role.EQUIPE)


@pytest.fixture()
def make_user(app):
    """Creates a user in its own app context and returns its id."""
    def _make(name, email, role=Role.EQUIPE):
        with app.app_context():
            return _create_user(name, email, role).id
    return _make


@pytest.fixture()
def login(client):
    def _login(email, password=PASSWORD):
        return client.post('/auth/login', data={'email': email, 'password': password})
    return _login
