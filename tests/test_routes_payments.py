import pytest

from app import db
from app.models import Memorial, PaymentTransaction
from app.services.errors import PaymentGatewayError
from app.services.paystack_service import PaymentVerification, PaystackClient


@pytest.fixture
def paystack(monkeypatch):
    """Replace the Paystack HTTP call with a configurable stub."""
    state = {'succeeded': True, 'amount': 75000, 'currency': 'ZAR', 'error': None, 'calls': 0}

    def fake_verify(self, reference):
        state['calls'] += 1
        if state['error']:
            raise state['error']
        return PaymentVerification(reference=reference, succeeded=state['succeeded'],
                                   status='success' if state['succeeded'] else 'failed',
                                   amount=state['amount'], currency=state['currency'],
                                   message='Verification successful' if state['succeeded'] else 'Declined')

    monkeypatch.setattr(PaystackClient, 'verify_transaction', fake_verify)
    return state


def _verify(client, **payload):
    body = {'reference': 'ref-123', 'plan': 'LEGACY'}
    body.update(payload)
    return client.post('/api/paystack/verify', json=body)


def test_checkout_page(client, owner, make_memorial, login):
    memorial = make_memorial(owner, name='Jane Doe')
    login(owner)
    response = client.get(f'/payments/LEGACY/{memorial.id}')
    assert response.status_code == 200
    assert b'Jane Doe' in response.data
    assert b'R750.00' in response.data
    assert b'pk_test_public' in response.data


def test_checkout_rejects_bad_plan_and_strangers(client, owner, other_user, make_memorial, login):
    memorial = make_memorial(owner)
    login(other_user)
    assert client.get(f'/payments/SPIRIT/{memorial.id}').status_code == 400
    assert client.get(f'/payments/LEGACY/{memorial.id}').status_code == 403
    assert client.get('/payments/LEGACY/unknown').status_code == 404


def test_verify_success(client, owner, make_memorial, paystack):
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id)

    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] is True
    assert body['message'] == 'Payment verified successfully.'
    assert body['plan'] == 'LEGACY'

    db.session.expire_all()
    updated = db.session.get(Memorial, memorial.id)
    assert updated.plan == 'LEGACY'
    assert updated.plan_expiry_date == body['planExpiryDate']


def test_verify_is_idempotent(client, owner, make_memorial, paystack):
    memorial = make_memorial(owner)
    first = _verify(client, memorialId=memorial.id).get_json()
    second = _verify(client, memorialId=memorial.id)

    assert second.status_code == 200
    assert second.get_json()['planExpiryDate'] == first['planExpiryDate']
    assert paystack['calls'] == 1
    assert PaymentTransaction.query.filter_by(reference='ref-123').count() == 1


@pytest.mark.parametrize('payload', [
    {'reference': ''}, {'plan': None}, {},
])
def test_verify_missing_fields(client, paystack, payload):
    response = client.post('/api/paystack/verify', json=payload)
    assert response.status_code == 400
    assert response.get_json() == {'status': False, 'message': 'Missing required fields.'}
    assert paystack['calls'] == 0


def test_verify_invalid_plan(client, owner, make_memorial, paystack):
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id, plan='SPIRIT')
    assert response.status_code == 400
    assert paystack['calls'] == 0


def test_verify_unknown_memorial(client, paystack):
    assert _verify(client, memorialId='nope').status_code == 404


def test_verify_declined(client, owner, make_memorial, paystack):
    paystack['succeeded'] = False
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id)
    assert response.status_code == 400
    assert response.get_json() == {'status': False, 'message': 'Declined'}
    db.session.expire_all()
    assert db.session.get(Memorial, memorial.id).plan == 'SPIRIT'


def test_verify_gateway_down(client, owner, make_memorial, paystack):
    paystack['error'] = PaymentGatewayError('timeout')
    memorial = make_memorial(owner)
    assert _verify(client, memorialId=memorial.id).status_code == 502


@pytest.mark.parametrize('field,value', [('amount', None), ('currency', 'NGN'), ('amount', 1000)])
def test_verify_rejects_payment_that_does_not_cover_the_plan(client, owner, make_memorial, paystack, field, value):
    paystack[field] = value
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id)
    assert response.status_code == 400
    assert response.get_json()['status'] is False
    db.session.expire_all()
    assert db.session.get(Memorial, memorial.id).plan == 'SPIRIT'
    assert PaymentTransaction.query.filter_by(reference='ref-123').one().status == 'failed'


def test_verify_refuses_reference_replayed_for_another_plan(client, owner, make_memorial, paystack):
    memorial = make_memorial(owner)
    assert _verify(client, memorialId=memorial.id).status_code == 200
    response = _verify(client, memorialId=memorial.id, plan='ETERNAL')
    assert response.status_code == 400
    assert paystack['calls'] == 1


def test_verify_without_secret_key(client, owner, make_memorial, app):
    app.config['PAYSTACK_SECRET_KEY'] = None
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id)
    assert response.status_code == 500
    assert response.get_json()['message'] == 'Server configuration error.'


def test_verify_apply_failure(client, owner, make_memorial, paystack, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from app.services.memorial_repository import MemorialRepository

    def broken(self, *args, **kwargs):
        raise OperationalError('UPDATE memorial', {}, Exception('database is locked'))

    monkeypatch.setattr(MemorialRepository, 'set_plan', broken)
    memorial = make_memorial(owner)
    response = _verify(client, memorialId=memorial.id)
    assert response.status_code == 500
    assert PaymentTransaction.query.filter_by(reference='ref-123').one().status == 'needs_reconciliation'
