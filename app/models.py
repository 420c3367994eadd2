from app import db
from flask_login import UserMixin
from app.utils.password_handler import hash_password, verify_password
from app.services.access_control import Plan, Visibility, OwnerStatus
import datetime
import uuid


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def new_memorial_id():
    return str(uuid.uuid4())


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    status = db.Column(db.String(20), default=OwnerStatus.FREE.value, nullable=False)  # FREE, PAID, ADMIN, SUSPENDED
    signup_date = db.Column(db.DateTime, default=utcnow, nullable=False)
    status_changed_at = db.Column(db.DateTime)

    memorials = db.relationship('Memorial', back_populates='owner', lazy=True)

    def __str__(self):
        return self.email

    @property
    def owner_status(self):
        return OwnerStatus.parse(self.status) or OwnerStatus.FREE

    @property
    def is_admin(self):
        return self.owner_status is OwnerStatus.ADMIN

    @property
    def is_suspended(self):
        return self.owner_status is OwnerStatus.SUSPENDED

    def set_password(self, password):
        self.password_hash = hash_password(password)

    def check_password(self, password):
        return verify_password(password, self.password_hash)


class Memorial(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_memorial_id)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    owner_status = db.Column(db.String(20), default=OwnerStatus.FREE.value, nullable=False)

    deceased_name = db.Column(db.String(200), nullable=False, index=True)
    birth_date = db.Column(db.String(10))
    death_date = db.Column(db.String(10))
    life_summary = db.Column(db.Text, default='')
    biography = db.Column(db.Text, default='')
    tributes = db.Column(db.JSON, default=list, nullable=False)
    stories = db.Column(db.JSON, default=list, nullable=False)
    template = db.Column(db.String(20), default='classic', nullable=False)  # classic, rustic, skyline

    plan = db.Column(db.String(20), default=Plan.SPIRIT.value, nullable=False)
    plan_expiry_date = db.Column(db.String(40))  # ISO date or UTC timestamp, 'ETERNAL' or NULL
    visibility = db.Column(db.String(10), default=Visibility.NORMAL.value, nullable=False)

    view_count = db.Column(db.Integer, default=0, nullable=False)
    last_visited = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    owner = db.relationship('User', back_populates='memorials')
    photos = db.relationship('Photo', back_populates='memorial', order_by='Photo.position',
                             cascade='all, delete-orphan', lazy=True)
    views = db.relationship('MemorialView', back_populates='memorial', order_by='MemorialView.viewed_at',
                            cascade='all, delete-orphan', lazy=True)

    def __str__(self):
        return self.deceased_name

    @property
    def plan_enum(self):
        return Plan.parse(self.plan)

    @property
    def is_hidden(self):
        return Visibility.parse(self.visibility) is Visibility.HIDDEN

    @property
    def is_eternal(self):
        return self.plan_enum is Plan.ETERNAL

    @property
    def profile_photo_url(self):
        return self.photos[0].url if self.photos else None


class Photo(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_memorial_id)
    memorial_id = db.Column(db.String(36), db.ForeignKey('memorial.id'), nullable=False, index=True)
    url = db.Column(db.String(500), nullable=False)
    caption = db.Column(db.String(300))
    position = db.Column(db.Integer, default=0, nullable=False)

    memorial = db.relationship('Memorial', back_populates='photos')


class MemorialView(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    memorial_id = db.Column(db.String(36), db.ForeignKey('memorial.id'), nullable=False, index=True)
    viewed_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    memorial = db.relationship('Memorial', back_populates='views')


class PaymentTransaction(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(100), unique=True, nullable=False, index=True)
    # Plain column: payment records outlive a deleted memorial.
    memorial_id = db.Column(db.String(36), nullable=False, index=True)
    plan = db.Column(db.String(20), nullable=False)
    amount = db.Column(db.Integer)
    currency = db.Column(db.String(3))
    # pending, applied, failed, needs_reconciliation
    status = db.Column(db.String(30), default='pending', nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    applied_at = db.Column(db.DateTime)

    def __str__(self):
        return f"Payment {self.reference}: {self.plan} for {self.memorial_id} - Status: {self.status}"


class Feedback(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    feedback = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    status = db.Column(db.String(10), default='unread', nullable=False)  # read, unread

    user = db.relationship('User')


class AuditLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    actor_id = db.Column(db.Integer, nullable=True)
    ip = db.Column(db.String(45))
    action = db.Column(db.String(64), nullable=False, index=True)
    object_type = db.Column(db.String(64))
    object_id = db.Column(db.String(64))
    details = db.Column(db.Text)
    success = db.Column(db.Boolean, default=True, nullable=False)
