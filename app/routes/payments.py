"""Plan checkout and Paystack payment verification."""
from flask import Blueprint, render_template, request, jsonify, current_app, abort
from flask_login import login_required, current_user
from flask_babel import _

from app import csrf
from app.services.errors import (
    InvalidPlan, MemorialNotFound, PaymentNotVerified, PaymentGatewayError,
    PaymentConfigurationError, UpgradeApplicationFailure,
)
from app.services.memorial_repository import MemorialRepository
from app.services.paystack_service import PaystackClient
from app.services.plan_service import PlanPolicy, verify_and_apply_upgrade
from app.utils.messages import (
    PAYMENT_VERIFIED, PAYMENT_ALREADY_APPLIED, PAYMENT_MISSING_FIELDS, PAYMENT_FAILED,
    PAYMENT_CONFIG_ERROR, PAYMENT_APPLY_FAILED, PAYMENT_INVALID_PLAN,
)

bp = Blueprint('payments', __name__)


def _error(message, status):
    return jsonify({'status': False, 'message': str(message)}), status


@bp.route('/payments/<plan>/<memorial_id>')
@login_required
def checkout(plan, memorial_id):
    policy = PlanPolicy.from_config(current_app.config)
    try:
        selected = policy.purchasable(plan)
    except InvalidPlan:
        return render_template('payments/checkout.html', plan=None, memorial=None,
                               title=_('Invalid Payment Link')), 400

    memorial = MemorialRepository().get(memorial_id)
    if memorial is None:
        abort(404)
    if memorial.owner_id != current_user.id:
        abort(403)

    return render_template(
        'payments/checkout.html',
        plan=selected.value,
        memorial=memorial,
        amount=policy.price_for(selected),
        currency=current_app.config.get('PLAN_CURRENCY'),
        public_key=current_app.config.get('PAYSTACK_PUBLIC_KEY'),
        email=current_user.email,
        title=_('Upgrade Plan'),
    )


@bp.route('/api/paystack/verify', methods=['POST'])
@csrf.exempt
def paystack_verify():
    payload = request.get_json(silent=True) or {}
    reference = payload.get('reference')
    plan = payload.get('plan')
    memorial_id = payload.get('memorialId')

    if not reference or not plan or not memorial_id:
        return _error(PAYMENT_MISSING_FIELDS, 400)

    gateway = PaystackClient.from_config(current_app.config)
    try:
        result = verify_and_apply_upgrade(reference, memorial_id, plan, gateway)
    except InvalidPlan:
        return _error(PAYMENT_INVALID_PLAN, 400)
    except MemorialNotFound:
        return _error(_('Memorial not found.'), 404)
    except PaymentNotVerified as e:
        return _error(e.message or PAYMENT_FAILED, 400)
    except PaymentConfigurationError:
        return _error(PAYMENT_CONFIG_ERROR, 500)
    except PaymentGatewayError as e:
        current_app.logger.error(f"Payment gateway error for {reference}: {e}")
        return _error(_('Could not connect to payment gateway.'), 502)
    except UpgradeApplicationFailure:
        return _error(PAYMENT_APPLY_FAILED, 500)

    message = PAYMENT_ALREADY_APPLIED if result.already_applied else PAYMENT_VERIFIED
    return jsonify({
        'status': True,
        'message': str(message),
        'plan': result.memorial.plan,
        'planExpiryDate': result.memorial.plan_expiry_date,
    })
