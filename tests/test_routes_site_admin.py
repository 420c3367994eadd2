from app import db
from app.models import Memorial, User, Feedback, AuditLog


def test_requires_admin(client, owner, login):
    assert client.get('/pappapage/').status_code == 302
    login(owner)
    response = client.get('/pappapage/')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/admin/')


def test_user_list_shows_counts(client, admin_user, owner, make_memorial, login):
    make_memorial(owner, name='A')
    make_memorial(owner, name='B', plan='ETERNAL', plan_expiry_date='ETERNAL')
    login(admin_user)
    response = client.get('/pappapage/?sort=memorial_count&dir=desc')
    assert response.status_code == 200
    assert b'owner@test.com' in response.data


def test_status_change_updates_memorial_snapshots(client, admin_user, owner, make_memorial, login):
    memorial = make_memorial(owner)
    login(admin_user)

    # A FREE owner's SPIRIT memorial is private...
    client.get('/auth/logout')
    assert client.get(f'/memorial/{memorial.id}').status_code == 403

    login(admin_user)
    response = client.post(f'/pappapage/users/{owner.id}/status', data={'status': 'ADMIN'})
    assert response.status_code == 302

    db.session.expire_all()
    assert db.session.get(User, owner.id).status == 'ADMIN'
    assert db.session.get(User, owner.id).status_changed_at is not None
    assert db.session.get(Memorial, memorial.id).owner_status == 'ADMIN'
    assert AuditLog.query.filter_by(action='USER_STATUS_CHANGED').count() == 1

    # ...and public once the owner is an administrator.
    client.get('/auth/logout')
    assert client.get(f'/memorial/{memorial.id}').status_code == 200


def test_invalid_status_and_self_change(client, admin_user, owner, login):
    login(admin_user)
    client.post(f'/pappapage/users/{owner.id}/status', data={'status': 'EMPEROR'})
    client.post(f'/pappapage/users/{admin_user.id}/status', data={'status': 'FREE'})
    db.session.expire_all()
    assert db.session.get(User, owner.id).status == 'FREE'
    assert db.session.get(User, admin_user.id).status == 'ADMIN'
    assert client.post('/pappapage/users/9999/status', data={'status': 'FREE'}).status_code == 404


def test_visibility_toggle(client, admin_user, owner, make_memorial, login):
    memorial = make_memorial(owner, plan='ETERNAL', plan_expiry_date='ETERNAL')
    login(admin_user)
    assert b'owner@test.com' in client.get('/pappapage/memorials').data

    client.post(f'/pappapage/memorials/{memorial.id}/visibility')
    db.session.expire_all()
    assert db.session.get(Memorial, memorial.id).visibility == 'hidden'

    client.get('/auth/logout')
    assert client.get(f'/memorial/{memorial.id}').status_code == 403

    login(admin_user)
    client.post(f'/pappapage/memorials/{memorial.id}/visibility')
    db.session.expire_all()
    assert db.session.get(Memorial, memorial.id).visibility == 'normal'
    assert client.post('/pappapage/memorials/unknown/visibility').status_code == 404


def test_feedback_toggle(client, admin_user, owner, login):
    entry = Feedback(user_id=owner.id, email=owner.email, feedback='Please add dark mode.')
    db.session.add(entry)
    db.session.commit()
    entry_id = entry.id

    login(admin_user)
    assert b'Please add dark mode.' in client.get('/pappapage/feedback').data

    client.post(f'/pappapage/feedback/{entry_id}/toggle')
    db.session.expire_all()
    assert db.session.get(Feedback, entry_id).status == 'read'
    assert b'Please add dark mode.' not in client.get('/pappapage/feedback').data
    assert b'Please add dark mode.' in client.get('/pappapage/feedback?show_read=1').data

    client.post(f'/pappapage/feedback/{entry_id}/toggle')
    db.session.expire_all()
    assert db.session.get(Feedback, entry_id).status == 'unread'
