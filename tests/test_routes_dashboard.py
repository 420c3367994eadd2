import io

from PIL import Image

from app import db
from app.models import Memorial, Feedback, AuditLog
from app.services.ai_drafting import OrganizedContent
from app.services.errors import AIDraftingError


def _memorial_form(**overrides):
    data = {
        'deceased_name': 'Jane Doe',
        'birth_date': '1950-01-01',
        'death_date': '2023-01-01',
        'life_summary': 'Loved gardening.',
        'biography': 'Jane was kind.',
        'template': 'rustic',
        'photos-0-url': 'https://placehold.co/600x400.png',
        'photos-0-caption': 'A beautiful memory',
        'tributes-0': 'Deeply missed.',
        'tributes-1': '',
        'stories-0': 'She once grew a giant pumpkin.',
    }
    data.update(overrides)
    return data


def test_dashboard_requires_login(client):
    response = client.get('/admin/')
    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_dashboard_lists_own_memorials(client, owner, other_user, make_memorial, login):
    make_memorial(owner, name='Mine')
    make_memorial(other_user, name='Not Mine')
    login(owner)
    response = client.get('/admin/')
    assert response.status_code == 200
    assert b'Mine' in response.data
    assert b'Not Mine' not in response.data


def test_create_memorial(client, owner, login):
    login(owner)
    assert client.get('/admin/create').status_code == 200

    response = client.post('/admin/create', data=_memorial_form())
    assert response.status_code == 302

    memorial = Memorial.query.filter_by(owner_id=owner.id).one()
    assert memorial.deceased_name == 'Jane Doe'
    assert memorial.birth_date == '1950-01-01'
    assert memorial.template == 'rustic'
    assert memorial.plan == 'SPIRIT'
    assert memorial.tributes == ['Deeply missed.']
    assert memorial.stories == ['She once grew a giant pumpkin.']
    assert [p.caption for p in memorial.photos] == ['A beautiful memory']
    assert AuditLog.query.filter_by(action='MEMORIAL_CREATED').count() == 1


def test_create_with_uploaded_photo(client, owner, login, app):
    login(owner)
    buf = io.BytesIO()
    Image.new('RGB', (10, 10), color='blue').save(buf, format='PNG')
    buf.seek(0)
    data = _memorial_form(**{'photos-0-url': '', 'photos-1-file': (buf, 'portrait.png')})

    response = client.post('/admin/create', data=data, content_type='multipart/form-data')
    assert response.status_code == 302

    memorial = Memorial.query.filter_by(owner_id=owner.id).one()
    assert len(memorial.photos) == 1
    assert memorial.photos[0].url.startswith('/static/uploads/')


def test_death_before_birth_is_rejected(client, owner, login):
    login(owner)
    response = client.post('/admin/create', data=_memorial_form(death_date='1940-01-01'))
    assert response.status_code == 200
    assert Memorial.query.count() == 0


def test_edit_memorial_keeps_plan(client, owner, make_memorial, login):
    memorial = make_memorial(owner, plan='LEGACY', plan_expiry_date='2035-01-01')
    login(owner)
    assert client.get(f'/admin/edit/{memorial.id}').status_code == 200

    response = client.post(f'/admin/edit/{memorial.id}', data=_memorial_form(deceased_name='Jane A. Doe'))
    assert response.status_code == 302

    db.session.expire_all()
    updated = db.session.get(Memorial, memorial.id)
    assert updated.deceased_name == 'Jane A. Doe'
    assert updated.plan == 'LEGACY'
    assert updated.plan_expiry_date == '2035-01-01'


def test_cannot_edit_someone_elses_memorial(client, owner, other_user, make_memorial, login):
    memorial = make_memorial(owner)
    login(other_user)
    assert client.get(f'/admin/edit/{memorial.id}').status_code == 403
    assert client.post(f'/admin/edit/{memorial.id}', data=_memorial_form()).status_code == 403
    assert client.get('/admin/edit/unknown').status_code == 404


def test_delete_memorial(client, owner, other_user, make_memorial, login):
    memorial_id = make_memorial(owner).id
    login(other_user)
    assert client.post(f'/admin/delete/{memorial_id}').status_code == 403

    client.get('/auth/logout')
    login(owner)
    assert client.post(f'/admin/delete/{memorial_id}').status_code == 302
    db.session.expire_all()
    assert db.session.get(Memorial, memorial_id) is None


def test_suspended_owner_is_blocked(client, owner, make_memorial, login):
    login(owner)
    owner.status = 'SUSPENDED'
    db.session.commit()
    response = client.get('/admin/')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/')


def test_qr_codes(client, owner, make_memorial, login):
    memorial = make_memorial(owner, name='QR Person')
    login(owner)
    page = client.get('/admin/qrcodes')
    assert page.status_code == 200
    assert b'data:image/png;base64,' in page.data
    assert f'/memorial/{memorial.id}'.encode() in page.data

    png = client.get(f'/admin/qrcodes/{memorial.id}.png')
    assert png.status_code == 200
    assert png.mimetype == 'image/png'
    assert png.data.startswith(b'\x89PNG')
    assert 'attachment' in png.headers['Content-Disposition']


def test_scan_statistics(client, owner, make_memorial, login):
    memorial = make_memorial(owner, name='Counted', plan='ETERNAL', plan_expiry_date='ETERNAL')
    client.get(f'/memorial/{memorial.id}')
    client.get(f'/memorial/{memorial.id}')
    login(owner)
    for sort in ('name', 'view_count', 'last_visited', 'bogus'):
        response = client.get(f'/admin/scans?sort={sort}&dir=asc')
        assert response.status_code == 200
    assert b'Counted' in response.data


def test_feedback(client, owner, login):
    login(owner)
    response = client.post('/admin/feedback', data={'feedback': 'Lovely site.'})
    assert response.status_code == 302
    entry = Feedback.query.one()
    assert entry.email == owner.email
    assert entry.status == 'unread'

    client.post('/admin/feedback', data={'feedback': ''})
    assert Feedback.query.count() == 1


def test_ai_biography(client, owner, login, monkeypatch):
    captured = {}

    def fake_draft(name, birth_date, death_date, life_summary):
        captured.update(name=name, life_summary=life_summary)
        return 'Drafted biography.'

    monkeypatch.setattr('app.routes.dashboard.generate_biography_draft', fake_draft)
    login(owner)

    response = client.post('/admin/ai/biography', json={
        'name': 'Jane', 'lifeSummary': 'Gardener', 'birthDate': '1950-01-01', 'deathDate': '2023-01-01'})
    assert response.status_code == 200
    assert response.get_json() == {'biographyDraft': 'Drafted biography.'}
    assert captured == {'name': 'Jane', 'life_summary': 'Gardener'}

    assert client.post('/admin/ai/biography', json={'name': 'Jane'}).status_code == 400


def test_ai_biography_failure(client, owner, login, monkeypatch):
    def failing(*args):
        raise AIDraftingError('Failed to generate biography. Please try again.')

    monkeypatch.setattr('app.routes.dashboard.generate_biography_draft', failing)
    login(owner)
    response = client.post('/admin/ai/biography', json={'name': 'Jane', 'lifeSummary': 'x'})
    assert response.status_code == 502
    assert response.get_json()['error'] == 'Failed to generate biography. Please try again.'


def test_ai_organize(client, owner, login, monkeypatch):
    def fake_organize(biography, tributes, stories, photos):
        return OrganizedContent(biography=biography.upper(), tributes=tributes, stories=stories,
                                photo_gallery=photos)

    monkeypatch.setattr('app.routes.dashboard.organize_content', fake_organize)
    login(owner)
    response = client.post('/admin/ai/organize', json={
        'biography': 'bio', 'tributes': ['t'], 'stories': ['s'], 'photos': ['/a.jpg']})
    assert response.status_code == 200
    assert response.get_json() == {'organizedContent': {
        'biography': 'BIO', 'tributes': ['t'], 'stories': ['s'], 'photoGallery': ['/a.jpg']}}
