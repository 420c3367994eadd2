"""
Memorial persistence.

Thin repository over Flask-SQLAlchemy. Route handlers and services go through
it instead of querying ``Memorial`` directly so the access rules never depend
on the storage technology.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, List

from sqlalchemy import update, func
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models import Memorial, Photo, MemorialView, User, utcnow
from app.services.access_control import Plan, Visibility, OwnerStatus
from app.services.errors import MemorialNotFound, MemorialPermissionError

logger = logging.getLogger(__name__)

# Fields an owner may edit. Identity, plan, visibility and counters are
# changed only by dedicated operations.
CONTENT_FIELDS = (
    'deceased_name', 'birth_date', 'death_date', 'life_summary',
    'biography', 'tributes', 'stories', 'template',
)


@dataclass
class MemorialSummary:
    id: str
    name: str
    birth_date: Optional[str]
    death_date: Optional[str]
    profile_photo_url: Optional[str]
    view_count: int
    last_visited: Optional[datetime]
    plan: str
    plan_expiry_date: Optional[str]


@dataclass
class AdminMemorialView:
    id: str
    deceased_name: str
    owner_id: int
    owner_email: str
    owner_status: str
    plan: str
    plan_expiry_date: Optional[str]
    created_at: datetime
    view_count: int
    visibility: str


class MemorialRepository:
    """CRUD and counter operations on memorial records."""

    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, memorial_id) -> Optional[Memorial]:
        """Return the memorial or None. Storage errors are reported as not found."""
        if not memorial_id:
            return None
        try:
            return self.session.get(Memorial, str(memorial_id))
        except SQLAlchemyError:
            logger.exception(f"Memorial lookup failed for {memorial_id}")
            self.session.rollback()
            return None

    def get_or_raise(self, memorial_id) -> Memorial:
        memorial = self.get(memorial_id)
        if memorial is None:
            raise MemorialNotFound(memorial_id)
        return memorial

    def list_by_owner(self, owner_id) -> List[MemorialSummary]:
        memorials = (Memorial.query.filter_by(owner_id=owner_id)
                     .order_by(Memorial.deceased_name).all())
        return [
            MemorialSummary(
                id=m.id,
                name=m.deceased_name,
                birth_date=m.birth_date,
                death_date=m.death_date,
                profile_photo_url=m.profile_photo_url,
                view_count=m.view_count or 0,
                last_visited=m.last_visited,
                plan=m.plan,
                plan_expiry_date=m.plan_expiry_date,
            )
            for m in memorials
        ]

    def list_all(self) -> List[AdminMemorialView]:
        rows = (self.session.query(Memorial, User.email)
                .join(User, Memorial.owner_id == User.id)
                .order_by(Memorial.deceased_name).all())
        return [
            AdminMemorialView(
                id=m.id,
                deceased_name=m.deceased_name,
                owner_id=m.owner_id,
                owner_email=email,
                owner_status=m.owner_status,
                plan=m.plan,
                plan_expiry_date=m.plan_expiry_date,
                created_at=m.created_at,
                view_count=m.view_count or 0,
                visibility=m.visibility,
            )
            for m, email in rows
        ]

    def count_by_owner(self):
        """Map owner id -> number of memorials."""
        rows = (self.session.query(Memorial.owner_id, func.count(Memorial.id))
                .group_by(Memorial.owner_id).all())
        return {owner_id: count for owner_id, count in rows}

    def count_qr_codes_by_owner(self):
        """Map owner id -> number of memorials on a paid plan (those get a QR plaque)."""
        rows = (self.session.query(Memorial.owner_id, func.count(Memorial.id))
                .filter(Memorial.plan != Plan.SPIRIT.value)
                .group_by(Memorial.owner_id).all())
        return {owner_id: count for owner_id, count in rows}

    def create(self, owner: User, data: dict) -> Memorial:
        memorial = Memorial(
            owner_id=owner.id,
            owner_status=owner.owner_status.value,
            plan=Plan.SPIRIT.value,
            plan_expiry_date=None,
            visibility=Visibility.NORMAL.value,
            view_count=0,
        )
        self._apply_content(memorial, data)
        self.session.add(memorial)
        self.session.commit()
        logger.info(f"Memorial {memorial.id} created for user {owner.id}")
        return memorial

    def save(self, memorial_id, owner_id, data: dict) -> Memorial:
        memorial = self.get_or_raise(memorial_id)
        if memorial.owner_id != owner_id:
            logger.error(f"User {owner_id} cannot edit memorial {memorial_id} owned by {memorial.owner_id}")
            raise MemorialPermissionError(
                f"User {owner_id} cannot edit memorial {memorial_id}")
        self._apply_content(memorial, data)
        self.session.commit()
        return memorial

    def delete(self, memorial_id, owner_id) -> bool:
        """Delete an owner's memorial. Returns False when it did not exist."""
        memorial = self.get(memorial_id)
        if memorial is None:
            logger.warning(f"Memorial {memorial_id} not found for deletion")
            return False
        if memorial.owner_id != owner_id:
            logger.error(f"Unauthorized attempt to delete memorial {memorial_id} by user {owner_id}")
            raise MemorialPermissionError("You can only delete your own memorials.")
        self.session.delete(memorial)
        self.session.commit()
        return True

    def increment_view(self, memorial_id, now=None) -> None:
        """Atomically bump the view counter and record the view timestamp."""
        now = now or utcnow()
        self.session.execute(
            update(Memorial)
            .where(Memorial.id == str(memorial_id))
            .values(view_count=Memorial.view_count + 1, last_visited=now)
        )
        self.session.add(MemorialView(memorial_id=str(memorial_id), viewed_at=now))
        self.session.commit()

    def set_plan(self, memorial_id, plan: Plan, plan_expiry_date, commit=True) -> Memorial:
        memorial = self.get_or_raise(memorial_id)
        memorial.plan = plan.value
        memorial.plan_expiry_date = plan_expiry_date
        if commit:
            self.session.commit()
        return memorial

    def set_visibility(self, memorial_id, visibility: Visibility) -> Memorial:
        memorial = self.get_or_raise(memorial_id)
        memorial.visibility = visibility.value
        self.session.commit()
        return memorial

    def sync_owner_status(self, owner_id, status: OwnerStatus) -> int:
        """Refresh the owner-status snapshot on every memorial of ``owner_id``."""
        result = self.session.execute(
            update(Memorial)
            .where(Memorial.owner_id == owner_id)
            .values(owner_status=status.value)
        )
        self.session.commit()
        return result.rowcount or 0

    def _apply_content(self, memorial: Memorial, data: dict):
        for field in CONTENT_FIELDS:
            if field in data:
                value = data[field]
                if field in ('tributes', 'stories'):
                    value = [s.strip() for s in (value or []) if s and s.strip()]
                setattr(memorial, field, value)

        if 'photos' in data:
            memorial.photos.clear()
            for position, photo in enumerate(p for p in (data['photos'] or []) if p.get('url')):
                memorial.photos.append(Photo(
                    url=photo['url'],
                    caption=photo.get('caption') or None,
                    position=position,
                ))
