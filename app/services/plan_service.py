"""
Memorial plan lifecycle.

A memorial starts on the free SPIRIT plan. A verified payment moves it to a
paid plan whose public hosting lasts a configured number of years, or forever
for plans configured without a duration (stored as the ``ETERNAL`` sentinel).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.models import PaymentTransaction, Memorial, utcnow
from app.services.access_control import Plan, ETERNAL_EXPIRY
from app.services.errors import (
    InvalidPlan, PaymentConfigurationError, PaymentNotVerified, UpgradeApplicationFailure,
)
from app.utils.audit_log import log_action

logger = logging.getLogger(__name__)

TXN_PENDING = 'pending'
TXN_APPLIED = 'applied'
TXN_FAILED = 'failed'
TXN_NEEDS_RECONCILIATION = 'needs_reconciliation'

EXPIRY_FORMAT = '%Y-%m-%dT%H:%M:%SZ'
DEFAULT_CURRENCY = 'ZAR'


def _add_years(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return moment.replace(year=moment.year + years, day=28)


class PlanPolicy:
    """Maps purchasable plans to their hosting duration in years (None = never expires).

    Prices are in the smallest unit of ``currency``.
    """

    def __init__(self, durations: Dict[Plan, Optional[int]], prices: Optional[Dict[Plan, int]] = None,
                 currency: str = DEFAULT_CURRENCY):
        self.durations = dict(durations)
        self.prices = dict(prices or {})
        self.currency = currency.upper()

    @classmethod
    def from_config(cls, config) -> 'PlanPolicy':
        durations = {}
        for name, years in (config.get('PLAN_DURATION_YEARS') or {}).items():
            plan = Plan.parse(name)
            if plan is None or plan.is_free:
                logger.warning(f"Ignoring duration for unknown or free plan {name!r}")
                continue
            durations[plan] = int(years) if years is not None else None
        prices = {}
        for name, amount in (config.get('PLAN_PRICES') or {}).items():
            plan = Plan.parse(name)
            if plan is not None:
                prices[plan] = int(amount)
        return cls(durations, prices, config.get('PLAN_CURRENCY') or DEFAULT_CURRENCY)

    def purchasable(self, plan) -> Plan:
        """Return the parsed plan, or raise InvalidPlan if it cannot be bought."""
        parsed = Plan.parse(plan)
        if parsed is None or parsed not in self.durations:
            raise InvalidPlan(plan)
        return parsed

    def expiry_for(self, plan, now: Optional[datetime] = None) -> str:
        """Expiry as a UTC ISO timestamp, so the full term runs from the moment of purchase."""
        parsed = self.purchasable(plan)
        years = self.durations[parsed]
        if years is None:
            return ETERNAL_EXPIRY
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return _add_years(now.astimezone(timezone.utc), years).strftime(EXPIRY_FORMAT)

    def price_for(self, plan) -> Optional[int]:
        return self.prices.get(Plan.parse(plan))


@dataclass
class UpgradeResult:
    memorial: Memorial
    transaction: PaymentTransaction
    already_applied: bool = False


def _default_policy():
    return PlanPolicy.from_config(current_app.config)


def _default_repository():
    from app.services.memorial_repository import MemorialRepository
    return MemorialRepository()


def apply_plan_upgrade(memorial_id, new_plan, now=None, policy=None, repository=None) -> Memorial:
    """Move a memorial to ``new_plan`` and set its expiry from the policy.

    Raises:
        InvalidPlan: ``new_plan`` is not purchasable
        MemorialNotFound: no such memorial
        UpgradeApplicationFailure: the write failed
    """
    policy = policy or _default_policy()
    repository = repository or _default_repository()
    plan = policy.purchasable(new_plan)
    expiry = policy.expiry_for(plan, now)
    repository.get_or_raise(memorial_id)
    try:
        memorial = repository.set_plan(memorial_id, plan, expiry)
    except SQLAlchemyError as e:
        repository.session.rollback()
        logger.error(f"Failed to apply plan {plan.value} to memorial {memorial_id}: {e}")
        raise UpgradeApplicationFailure(None, memorial_id, e) from e
    logger.info(f"Memorial {memorial_id} upgraded to {plan.value} (expires {expiry})")
    return memorial


def _flag_for_reconciliation(reference, memorial_id, plan, verification):
    try:
        txn = PaymentTransaction.query.filter_by(reference=reference).first()
        if txn is None:
            txn = PaymentTransaction(reference=reference, memorial_id=str(memorial_id), plan=plan.value)
            db.session.add(txn)
        elif txn.status == TXN_APPLIED:
            logger.warning(f"Payment {reference} is already applied; leaving it unflagged")
            return
        txn.status = TXN_NEEDS_RECONCILIATION
        txn.amount = verification.amount
        txn.currency = verification.currency
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception(f"Could not flag payment {reference} for reconciliation")


def _check_recorded(txn, reference, memorial, plan):
    """Refuse a reference recorded for another memorial or plan; return True if already applied."""
    if txn is None:
        return False
    if txn.memorial_id != memorial.id:
        logger.warning(f"Payment {reference} belongs to memorial {txn.memorial_id}, not {memorial.id}")
        raise PaymentNotVerified(reference, "This payment reference belongs to another memorial.")
    if txn.plan != plan.value:
        logger.warning(f"Payment {reference} was made for plan {txn.plan}, not {plan.value}")
        raise PaymentNotVerified(reference, "This payment reference was made for a different plan.")
    if txn.status == TXN_APPLIED:
        logger.info(f"Payment {reference} already applied to memorial {memorial.id}")
        return True
    return False


def _reject(txn, reference, message):
    txn.status = TXN_FAILED
    db.session.commit()
    raise PaymentNotVerified(reference, message)


def verify_and_apply_upgrade(reference, memorial_id, plan, gateway, now=None, policy=None,
                             repository=None) -> UpgradeResult:
    """Verify a payment reference with the gateway and apply the paid plan.

    A reference is bound to one memorial and one plan and is applied at most
    once; replays return the earlier result with ``already_applied=True``.
    The paid amount must cover the plan price in the configured currency.

    Raises:
        InvalidPlan, MemorialNotFound, PaymentNotVerified,
        PaymentGatewayError, PaymentConfigurationError, UpgradeApplicationFailure
    """
    policy = policy or _default_policy()
    repository = repository or _default_repository()
    plan = policy.purchasable(plan)
    expected = policy.price_for(plan)
    if expected is None:
        raise PaymentConfigurationError(f"No price configured for plan {plan.value}")
    memorial = repository.get_or_raise(memorial_id)

    txn = PaymentTransaction.query.filter_by(reference=reference).first()
    if _check_recorded(txn, reference, memorial, plan):
        return UpgradeResult(memorial=memorial, transaction=txn, already_applied=True)

    verification = gateway.verify_transaction(reference)

    if txn is None:
        txn = PaymentTransaction(reference=reference, memorial_id=memorial.id, plan=plan.value,
                                 status=TXN_PENDING)
        db.session.add(txn)
    txn.amount = verification.amount
    txn.currency = verification.currency

    if not verification.succeeded:
        _reject(txn, reference, verification.message or "Payment verification failed.")

    if verification.amount is None or verification.amount < expected:
        logger.warning(f"Payment {reference} amount {verification.amount} does not cover the "
                       f"{plan.value} price {expected}")
        _reject(txn, reference, "Payment amount does not match the selected plan.")

    if (verification.currency or '').upper() != policy.currency:
        logger.warning(f"Payment {reference} currency {verification.currency} is not {policy.currency}")
        _reject(txn, reference, "Payment currency does not match the selected plan.")

    expiry = policy.expiry_for(plan, now)
    try:
        repository.set_plan(memorial.id, plan, expiry, commit=False)
        txn.status = TXN_APPLIED
        txn.applied_at = utcnow()
        db.session.commit()
    except IntegrityError as e:
        # another request recorded this reference first
        db.session.rollback()
        winner = PaymentTransaction.query.filter_by(reference=reference).first()
        if _check_recorded(winner, reference, memorial, plan):
            return UpgradeResult(memorial=repository.get_or_raise(memorial.id), transaction=winner,
                                 already_applied=True)
        _fail_upgrade(reference, memorial_id, plan, verification, e)
    except SQLAlchemyError as e:
        db.session.rollback()
        _fail_upgrade(reference, memorial_id, plan, verification, e)

    logger.info(f"Payment {reference} applied: memorial {memorial.id} now {plan.value} until {expiry}")
    log_action('PLAN_UPGRADED', f'Memorial {memorial.deceased_name} upgraded to {plan.value}', subject=memorial,
               additional_info={'reference': reference, 'plan': plan.value, 'plan_expiry_date': expiry})
    return UpgradeResult(memorial=memorial, transaction=txn)


def _fail_upgrade(reference, memorial_id, plan, verification, error):
    logger.error(
        f"Verified payment {reference} could not be applied to memorial {memorial_id} "
        f"(plan {plan.value}); manual reconciliation required: {error}")
    _flag_for_reconciliation(reference, memorial_id, plan, verification)
    log_action('PLAN_UPGRADE_FAILED', f'Verified payment could not be applied to memorial {memorial_id}',
               additional_info={'reference': reference, 'plan': plan.value, 'memorial_id': str(memorial_id)},
               success=False)
    raise UpgradeApplicationFailure(reference, memorial_id, error) from error
