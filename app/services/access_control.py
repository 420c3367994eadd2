"""
Memorial access control.

Decides, for a memorial record and a viewer, whether the public memorial page
may be shown. Pure functions only: no database, no request context. The caller
looks the record up, passes the current time and renders according to the
returned decision.

Evaluation order:
    1. hidden memorial + non-admin viewer        -> DEACTIVATED
    2. admin viewer, owner, admin-owned memorial -> GRANTED
    3. active paid plan                          -> GRANTED
    4. otherwise                                 -> RESTRICTED (EXPIRED or PRIVATE)
"""

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

ETERNAL_EXPIRY = 'ETERNAL'

_DATE_ONLY = re.compile(r'^\d{4}-\d{2}-\d{2}$')


class Plan(str, enum.Enum):
    SPIRIT = 'SPIRIT'
    ESSENCE = 'ESSENCE'
    LEGACY = 'LEGACY'
    ETERNAL = 'ETERNAL'

    @classmethod
    def parse(cls, value) -> Optional['Plan']:
        """Case-insensitive lookup; None for absent or unknown values."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None

    @property
    def is_free(self) -> bool:
        return self is Plan.SPIRIT


class Visibility(str, enum.Enum):
    NORMAL = 'normal'
    HIDDEN = 'hidden'

    @classmethod
    def parse(cls, value) -> 'Visibility':
        """Anything other than 'hidden' is normal ('shown' is the legacy spelling)."""
        if isinstance(value, cls):
            return value
        if value and str(value).strip().lower() == cls.HIDDEN.value:
            return cls.HIDDEN
        return cls.NORMAL


class OwnerStatus(str, enum.Enum):
    FREE = 'FREE'
    PAID = 'PAID'
    ADMIN = 'ADMIN'
    SUSPENDED = 'SUSPENDED'

    @classmethod
    def parse(cls, value) -> Optional['OwnerStatus']:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class AccessOutcome(str, enum.Enum):
    NOT_FOUND = 'not_found'
    DEACTIVATED = 'deactivated'
    RESTRICTED = 'restricted'
    GRANTED = 'granted'


class RestrictionReason(str, enum.Enum):
    PRIVATE = 'private'
    EXPIRED = 'expired'


class MalformedExpiryDate(ValueError):
    """Raised when a plan expiry date cannot be parsed."""


@dataclass(frozen=True)
class Viewer:
    id: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> 'Viewer':
        return cls(id=None, is_admin=False)

    @property
    def is_anonymous(self) -> bool:
        return self.id is None


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome
    reason: Optional[RestrictionReason] = None

    @property
    def granted(self) -> bool:
        return self.outcome is AccessOutcome.GRANTED

    @property
    def restricted(self) -> bool:
        return self.outcome is AccessOutcome.RESTRICTED


NOT_FOUND = AccessDecision(AccessOutcome.NOT_FOUND)
DEACTIVATED = AccessDecision(AccessOutcome.DEACTIVATED)
GRANTED = AccessDecision(AccessOutcome.GRANTED)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_expiry_date(value) -> datetime:
    """Parse an ISO-8601 date or date-time. Naive values are taken as UTC.

    A bare date (``2030-05-01``) is parsed as midnight UTC of that day.

    Raises:
        MalformedExpiryDate: if ``value`` is not a parseable ISO date.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str):
        raise MalformedExpiryDate(f'Unsupported expiry date value: {value!r}')

    text = value.strip()
    try:
        if _DATE_ONLY.match(text):
            return datetime.strptime(text, '%Y-%m-%d').replace(tzinfo=timezone.utc)
        return _as_utc(datetime.fromisoformat(text.replace('Z', '+00:00')))
    except ValueError as e:
        raise MalformedExpiryDate(f'Invalid expiry date {value!r}: {e}') from e


def is_plan_expired(plan_expiry_date, now: datetime) -> bool:
    """Absent or ETERNAL never expires; an unparseable date counts as expired."""
    if plan_expiry_date is None or plan_expiry_date == '':
        return False
    if isinstance(plan_expiry_date, str) and plan_expiry_date.strip().upper() == ETERNAL_EXPIRY:
        return False
    try:
        expiry = parse_expiry_date(plan_expiry_date)
    except MalformedExpiryDate as e:
        logger.warning(f"Treating malformed plan expiry date as expired: {e}")
        return True
    return _as_utc(now) > expiry


def plan_is_active_and_public(plan, plan_expiry_date, now: datetime) -> bool:
    # Unrecognised plan names fail closed: no write path stores one, so such a
    # row is corrupt and stays private rather than being published as paid.
    parsed = Plan.parse(plan)
    if parsed is None or parsed.is_free:
        return False
    return not is_plan_expired(plan_expiry_date, now)


def _owner_is_admin(record) -> bool:
    return OwnerStatus.parse(getattr(record, 'owner_status', None)) is OwnerStatus.ADMIN


def decide_access(record, viewer: Viewer, now: datetime) -> AccessDecision:
    """Decide whether ``viewer`` may see the memorial page for ``record``.

    ``record`` may be any object with ``owner_id``, ``owner_status``,
    ``visibility``, ``plan`` and ``plan_expiry_date`` attributes, or None when
    the lookup found nothing.
    """
    if record is None:
        return NOT_FOUND

    if Visibility.parse(record.visibility) is Visibility.HIDDEN and not viewer.is_admin:
        return DEACTIVATED

    is_owner = viewer.id is not None and str(viewer.id) == str(record.owner_id)
    if viewer.is_admin or is_owner or _owner_is_admin(record):
        return GRANTED
    if plan_is_active_and_public(record.plan, record.plan_expiry_date, now):
        return GRANTED

    plan = Plan.parse(record.plan)
    if plan is not None and not plan.is_free:
        return AccessDecision(AccessOutcome.RESTRICTED, RestrictionReason.EXPIRED)
    return AccessDecision(AccessOutcome.RESTRICTED, RestrictionReason.PRIVATE)


def should_log_view(record, decision: AccessDecision) -> bool:
    """Views are counted for granted, non-hidden pages only."""
    return (
        record is not None
        and decision.granted
        and Visibility.parse(record.visibility) is not Visibility.HIDDEN
    )
