import io

import pytest

from contract_tracker.backend import EXTENSION_KEY, get_backend
from contract_tracker.constants import Role
from contract_tracker.extensions import db
from contract_tracker.models import Process, ProcessDocument, User


@pytest.fixture()
def equipe_id(make_user):
    return make_user('Bruno Equipe', 'bruno@contratos.com.br', Role.EQUIPE)


@pytest.fixture()
def diretor_id(make_user):
    return make_user('Diretora Ana', 'ana@contratos.com.br', Role.DIRETOR)


def _create(client, title='Compra de Equipamentos', number='2024/001', deadline='2024-12-31'):
    return client.post('/processes', data={
        'title': title, 'process_number': number, 'deadline': deadline,
    })


def _only_process(app):
    with app.app_context():
        process = Process.query.one()
        return process.id


# ── auth ──────────────────────────────────────────────────────────────────


def test_dashboard_requires_login(client):
    res = client.get('/dashboard')
    assert res.status_code == 302
    assert '/auth/login' in res.headers['Location']


def test_login_and_logout(client, login, equipe_id):
    res = login('bruno@contratos.com.br')
    assert res.status_code == 302
    assert res.headers['Location'].endswith('/dashboard')

    client.get('/auth/logout')
    assert client.get('/dashboard').status_code == 302


def test_login_with_wrong_password_shows_message(client, login, equipe_id):
    res = login('bruno@contratos.com.br', 'errada')
    assert res.status_code == 200
    assert 'Falha ao entrar' in res.get_data(as_text=True)


# ── dashboard & processes ────────────────────────────────────────────────


def test_create_process_from_dashboard(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    res = _create(client)
    assert res.status_code == 302

    page = client.get('/dashboard').get_data(as_text=True)
    assert 'Compra de Equipamentos' in page
    assert 'Iniciação' in page

    with app.app_context():
        process = Process.query.one()
        assert process.current_stage == 'iniciacao'
        assert process.assigned_to_id == equipe_id
        assert [h.stage for h in process.history] == ['iniciacao']


def test_create_process_with_missing_field_is_rejected(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    _create(client, title='')
    with app.app_context():
        assert Process.query.count() == 0


def test_advance_through_view(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    _create(client)
    process_id = _only_process(app)

    detail = client.get(f'/processes/{process_id}').get_data(as_text=True)
    assert 'Especificação Técnica' in detail

    res = client.post(f'/processes/{process_id}/advance', data={'target_stage': 'especificacao'})
    assert res.status_code == 302

    with app.app_context():
        process = db.session.get(Process, process_id)
        assert process.current_stage == 'especificacao'
        assert len(process.history) == 2
        assert 'Especificação Técnica' in process.history[-1].notes


def test_advance_to_wrong_stage_through_view(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    _create(client)
    process_id = _only_process(app)

    client.post(f'/processes/{process_id}/advance', data={'target_stage': 'licitacao'})

    with app.app_context():
        assert db.session.get(Process, process_id).current_stage == 'iniciacao'


def test_upload_document_through_view(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    _create(client)
    process_id = _only_process(app)

    res = client.post(f'/processes/{process_id}/documents',
                      data={'file': (io.BytesIO(b'%PDF-1.4'), 'edital.pdf')},
                      content_type='multipart/form-data')
    assert res.status_code == 302

    with app.app_context():
        docs = db.session.get(Process, process_id).documents
        assert [d.name for d in docs] == ['edital.pdf']
        document_id = docs[0].id

    detail = client.get(f'/processes/{process_id}').get_data(as_text=True)
    assert f'href="/documents/{document_id}"' in detail
    assert client.get(f'/documents/{document_id}', follow_redirects=True).data == b'%PDF-1.4'


def test_process_detail_listens_for_changes(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    _create(client)
    detail = client.get(f'/processes/{_only_process(app)}').get_data(as_text=True)
    assert 'new EventSource("/processes/stream")' in detail


def test_equipe_cannot_open_someone_elses_process(app, client, login, equipe_id, diretor_id):
    login('ana@contratos.com.br')
    _create(client)
    process_id = _only_process(app)
    client.get('/auth/logout')

    login('bruno@contratos.com.br')
    assert client.get(f'/processes/{process_id}').status_code == 404
    assert 'Compra de Equipamentos' not in client.get('/dashboard').get_data(as_text=True)


def _upload(client, process_id, content=b'%PDF-1.4', name='edital.pdf'):
    return client.post(f'/processes/{process_id}/documents',
                       data={'file': (io.BytesIO(content), name)},
                       content_type='multipart/form-data')


def _only_document(app):
    with app.app_context():
        document = ProcessDocument.query.one()
        return document.id, document.storage_key


def test_equipe_cannot_fetch_someone_elses_documents(app, client, login, equipe_id, diretor_id):
    login('ana@contratos.com.br')
    _create(client)
    _upload(client, _only_process(app), b'CONFIDENTIAL')
    document_id, key = _only_document(app)
    assert client.get(f'/uploads/{key}').data == b'CONFIDENTIAL'
    client.get('/auth/logout')

    login('bruno@contratos.com.br')
    assert client.get(f'/uploads/{key}').status_code == 404
    assert client.get(f'/documents/{document_id}').status_code == 404


def test_uploads_route_only_serves_recorded_documents(client, login, equipe_id):
    login('bruno@contratos.com.br')
    assert client.get('/uploads/processes/1/unknown.pdf').status_code == 404


class PresigningStore:
    """Stands in for S3: every link it hands out is short-lived and unique."""

    def __init__(self):
        self.blobs = {}
        self.issued = 0

    def put(self, key, file_obj, content_type=None):
        self.blobs[key] = file_obj.read()
        return key

    def get_url(self, key):
        self.issued += 1
        return f"https://bucket.s3.amazonaws.com/{key}?X-Amz-Expires=604800&X-Amz-Signature=sig{self.issued}"


@pytest.fixture()
def presigning_store(app, monkeypatch):
    backend = app.extensions[EXTENSION_KEY]
    store = PresigningStore()
    monkeypatch.setattr(backend, 'blob_store', store)
    monkeypatch.setattr(backend.documents, 'blob_store', store)
    return store


def test_document_link_is_presigned_on_every_open(app, client, login, equipe_id, presigning_store):
    login('bruno@contratos.com.br')
    _create(client)
    process_id = _only_process(app)
    _upload(client, process_id)
    document_id, key = _only_document(app)

    detail = client.get(f'/processes/{process_id}').get_data(as_text=True)
    assert f'href="/documents/{document_id}"' in detail
    assert 'X-Amz' not in detail

    first = client.get(f'/documents/{document_id}')
    second = client.get(f'/documents/{document_id}')
    assert first.status_code == second.status_code == 302
    assert first.headers['Location'].startswith(f'https://bucket.s3.amazonaws.com/{key}?')
    assert first.headers['Location'] != second.headers['Location']
    # Only the local backend serves blobs itself
    assert client.get(f'/uploads/{key}').status_code == 404


def test_diretor_sees_all_processes_and_kpis(app, client, login, equipe_id, diretor_id):
    login('bruno@contratos.com.br')
    _create(client, deadline='2000-01-01')
    client.get('/auth/logout')

    login('ana@contratos.com.br')
    page = client.get('/dashboard').get_data(as_text=True)
    assert 'Compra de Equipamentos' in page
    assert 'id="kpi-delayed">1<' in page
    assert 'id="kpi-total">1<' in page


def test_equipe_dashboard_has_no_kpis(client, login, equipe_id):
    login('bruno@contratos.com.br')
    page = client.get('/dashboard').get_data(as_text=True)
    assert 'id="kpi-total"' not in page
    assert 'kpi-total' not in page


# ── security panel ───────────────────────────────────────────────────────


def test_security_panel_is_diretor_only(client, login, equipe_id):
    login('bruno@contratos.com.br')
    assert client.get('/admin/security').status_code == 403
    assert client.post('/admin/users', data={
        'name': 'X', 'email': 'x@contratos.com.br', 'password': 'temp1234', 'role': 'diretor',
    }).status_code == 403


def test_role_change_shows_security_entry_on_next_render(app, client, login, equipe_id):
    login('bruno@contratos.com.br')
    assert 'nav-security' not in client.get('/dashboard').get_data(as_text=True)

    with app.app_context():
        get_backend().users.set_role(equipe_id, Role.DIRETOR)

    assert 'nav-security' in client.get('/dashboard').get_data(as_text=True)
    assert client.get('/admin/security').status_code == 200


def test_diretor_changes_role_through_view(app, client, login, equipe_id, diretor_id):
    login('ana@contratos.com.br')
    res = client.post(f'/admin/users/{equipe_id}/role', data={f'user-{equipe_id}-role': 'diretor'})
    assert res.status_code == 302

    with app.app_context():
        assert db.session.get(User, equipe_id).role == Role.DIRETOR


def test_diretor_invites_user(app, client, login, diretor_id):
    login('ana@contratos.com.br')
    res = client.post('/admin/users', data={
        'name': 'Carla', 'email': 'carla@contratos.com.br', 'password': 'temp1234', 'role': 'equipe',
    })
    assert res.status_code == 302

    with app.app_context():
        user = User.query.filter_by(email='carla@contratos.com.br').one()
        assert user.role == Role.EQUIPE

    client.get('/auth/logout')
    assert login('carla@contratos.com.br', 'temp1234').status_code == 302


def test_invite_with_taken_email_flashes_single_message(client, login, diretor_id):
    login('ana@contratos.com.br')
    res = client.post('/admin/users', data={
        'name': 'Dup', 'email': 'ana@contratos.com.br', 'password': 'temp1234', 'role': 'equipe',
    }, follow_redirects=True)
    assert 'O e-mail já pode estar em uso' in res.get_data(as_text=True)
