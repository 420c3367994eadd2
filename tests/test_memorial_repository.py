import pytest

from app import db
from app.models import Memorial, MemorialView, PaymentTransaction
from app.services.access_control import Visibility, OwnerStatus, Plan
from app.services.errors import MemorialNotFound, MemorialPermissionError
from app.services.memorial_repository import MemorialRepository


def test_create_starts_private_and_uncounted(owner):
    memorial = MemorialRepository().create(owner, {
        'deceased_name': 'Jane Doe',
        'birth_date': '1950-01-01',
        'tributes': ['  Deeply missed.  ', '', '   '],
        'photos': [{'url': 'https://example.com/a.jpg', 'caption': 'A'}, {'url': '', 'caption': 'skip'}],
    })
    assert memorial.plan == Plan.SPIRIT.value
    assert memorial.plan_expiry_date is None
    assert memorial.visibility == Visibility.NORMAL.value
    assert memorial.view_count == 0
    assert memorial.owner_status == OwnerStatus.FREE.value
    assert memorial.tributes == ['Deeply missed.']
    assert [p.url for p in memorial.photos] == ['https://example.com/a.jpg']
    assert memorial.profile_photo_url == 'https://example.com/a.jpg'


def test_ids_are_unique(owner):
    repo = MemorialRepository()
    ids = {repo.create(owner, {'deceased_name': f'Person {i}'}).id for i in range(5)}
    assert len(ids) == 5


def test_get_returns_none_for_unknown_id(app):
    repo = MemorialRepository()
    assert repo.get('does-not-exist') is None
    assert repo.get(None) is None
    with pytest.raises(MemorialNotFound):
        repo.get_or_raise('does-not-exist')


def test_list_by_owner_only_returns_own_memorials(owner, other_user, make_memorial):
    make_memorial(owner, name='Zed')
    make_memorial(owner, name='Alice')
    make_memorial(other_user, name='Bob')

    summaries = MemorialRepository().list_by_owner(owner.id)
    assert [s.name for s in summaries] == ['Alice', 'Zed']
    assert all(s.view_count == 0 for s in summaries)


def test_save_rejects_non_owner(owner, other_user, make_memorial):
    memorial = make_memorial(owner)
    with pytest.raises(MemorialPermissionError):
        MemorialRepository().save(memorial.id, other_user.id, {'deceased_name': 'Hijacked'})
    assert db.session.get(Memorial, memorial.id).deceased_name == 'Jane Doe'


def test_save_does_not_touch_plan_or_counters(owner, make_memorial):
    memorial = make_memorial(owner, plan='LEGACY', plan_expiry_date='2030-01-01')
    MemorialRepository().save(memorial.id, owner.id, {
        'deceased_name': 'Jane A. Doe', 'plan': 'ETERNAL', 'view_count': 99, 'visibility': 'hidden',
    })
    reloaded = db.session.get(Memorial, memorial.id)
    assert reloaded.deceased_name == 'Jane A. Doe'
    assert reloaded.plan == 'LEGACY'
    assert reloaded.view_count == 0
    assert reloaded.visibility == 'normal'


def test_save_replaces_photos_in_order(owner, make_memorial):
    memorial = make_memorial(owner, photos=[{'url': '/old.jpg'}])
    MemorialRepository().save(memorial.id, owner.id, {'photos': [
        {'url': '/second.jpg', 'caption': 'two'}, {'url': '/first.jpg'},
    ]})
    reloaded = db.session.get(Memorial, memorial.id)
    assert [(p.url, p.position) for p in reloaded.photos] == [('/second.jpg', 0), ('/first.jpg', 1)]


def test_delete(owner, other_user, make_memorial):
    repo = MemorialRepository()
    memorial_id = make_memorial(owner).id
    with pytest.raises(MemorialPermissionError):
        repo.delete(memorial_id, other_user.id)
    assert repo.delete(memorial_id, owner.id) is True
    assert repo.get(memorial_id) is None
    assert repo.delete(memorial_id, owner.id) is False


def test_delete_keeps_payment_records(owner, make_memorial):
    memorial = make_memorial(owner)
    db.session.add(PaymentTransaction(reference='kept', memorial_id=memorial.id, plan='LEGACY', status='applied'))
    db.session.commit()
    MemorialRepository().delete(memorial.id, owner.id)
    assert PaymentTransaction.query.filter_by(reference='kept').count() == 1


def test_increment_view_is_cumulative(owner, make_memorial):
    repo = MemorialRepository()
    memorial = make_memorial(owner)
    for _ in range(3):
        repo.increment_view(memorial.id)
    db.session.expire_all()
    reloaded = db.session.get(Memorial, memorial.id)
    assert reloaded.view_count == 3
    assert reloaded.last_visited is not None
    assert MemorialView.query.filter_by(memorial_id=memorial.id).count() == 3


def test_set_visibility_and_plan(owner, make_memorial):
    repo = MemorialRepository()
    memorial = make_memorial(owner)
    repo.set_visibility(memorial.id, Visibility.HIDDEN)
    repo.set_plan(memorial.id, Plan.ETERNAL, 'ETERNAL')
    reloaded = db.session.get(Memorial, memorial.id)
    assert reloaded.is_hidden
    assert reloaded.is_eternal


def test_sync_owner_status_updates_every_memorial(owner, other_user, make_memorial):
    make_memorial(owner, name='A')
    make_memorial(owner, name='B')
    untouched = make_memorial(other_user, name='C')

    updated = MemorialRepository().sync_owner_status(owner.id, OwnerStatus.ADMIN)
    db.session.expire_all()

    assert updated == 2
    statuses = {m.deceased_name: m.owner_status for m in Memorial.query.all()}
    assert statuses == {'A': 'ADMIN', 'B': 'ADMIN', 'C': 'FREE'}
    assert db.session.get(Memorial, untouched.id).owner_status == 'FREE'


def test_counts_by_owner(owner, other_user, make_memorial):
    make_memorial(owner, name='A')
    make_memorial(owner, name='B', plan='ESSENCE', plan_expiry_date='2030-01-01')
    make_memorial(other_user, name='C')

    repo = MemorialRepository()
    assert repo.count_by_owner() == {owner.id: 2, other_user.id: 1}
    assert repo.count_qr_codes_by_owner() == {owner.id: 1}


def test_list_all_includes_owner_email(owner, make_memorial):
    make_memorial(owner, visibility='hidden')
    rows = MemorialRepository().list_all()
    assert len(rows) == 1
    assert rows[0].owner_email == 'owner@test.com'
    assert rows[0].visibility == 'hidden'
