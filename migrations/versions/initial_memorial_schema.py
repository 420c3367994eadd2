"""Initial memorial schema

Revision ID: initial_memorial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'initial_memorial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('signup_date', sa.DateTime(), nullable=False),
        sa.Column('status_changed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)

    op.create_table(
        'memorial',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('owner_status', sa.String(length=20), nullable=False),
        sa.Column('deceased_name', sa.String(length=200), nullable=False),
        sa.Column('birth_date', sa.String(length=10), nullable=True),
        sa.Column('death_date', sa.String(length=10), nullable=True),
        sa.Column('life_summary', sa.Text(), nullable=True),
        sa.Column('biography', sa.Text(), nullable=True),
        sa.Column('tributes', sa.JSON(), nullable=False),
        sa.Column('stories', sa.JSON(), nullable=False),
        sa.Column('template', sa.String(length=20), nullable=False),
        sa.Column('plan', sa.String(length=20), nullable=False),
        sa.Column('plan_expiry_date', sa.String(length=40), nullable=True),
        sa.Column('visibility', sa.String(length=10), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('last_visited', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_memorial_owner_id'), 'memorial', ['owner_id'], unique=False)
    op.create_index(op.f('ix_memorial_deceased_name'), 'memorial', ['deceased_name'], unique=False)

    op.create_table(
        'photo',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('memorial_id', sa.String(length=36), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('caption', sa.String(length=300), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['memorial_id'], ['memorial.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_photo_memorial_id'), 'photo', ['memorial_id'], unique=False)

    op.create_table(
        'memorial_view',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('memorial_id', sa.String(length=36), nullable=False),
        sa.Column('viewed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['memorial_id'], ['memorial.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_memorial_view_memorial_id'), 'memorial_view', ['memorial_id'], unique=False)
    op.create_index(op.f('ix_memorial_view_viewed_at'), 'memorial_view', ['viewed_at'], unique=False)

    op.create_table(
        'payment_transaction',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(length=100), nullable=False),
        sa.Column('memorial_id', sa.String(length=36), nullable=False),
        sa.Column('plan', sa.String(length=20), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(length=3), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payment_transaction_reference'), 'payment_transaction', ['reference'], unique=True)
    op.create_index(op.f('ix_payment_transaction_memorial_id'), 'payment_transaction', ['memorial_id'],
                    unique=False)

    op.create_table(
        'feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('ip', sa.String(length=45), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('object_type', sa.String(length=64), nullable=True),
        sa.Column('object_id', sa.String(length=64), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_audit_log_timestamp'), 'audit_log', ['timestamp'], unique=False)
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_audit_log_action'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_timestamp'), table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_table('feedback')
    op.drop_index(op.f('ix_payment_transaction_memorial_id'), table_name='payment_transaction')
    op.drop_index(op.f('ix_payment_transaction_reference'), table_name='payment_transaction')
    op.drop_table('payment_transaction')
    op.drop_index(op.f('ix_memorial_view_viewed_at'), table_name='memorial_view')
    op.drop_index(op.f('ix_memorial_view_memorial_id'), table_name='memorial_view')
    op.drop_table('memorial_view')
    op.drop_index(op.f('ix_photo_memorial_id'), table_name='photo')
    op.drop_table('photo')
    op.drop_index(op.f('ix_memorial_deceased_name'), table_name='memorial')
    op.drop_index(op.f('ix_memorial_owner_id'), table_name='memorial')
    op.drop_table('memorial')
    op.drop_index(op.f('ix_user_email'), table_name='user')
    op.drop_table('user')
