"""create_offers_discount_codes_and_subscriptions

Revision ID: 3c1f9a7e2b40
Revises:
Create Date: 2026-10-19 10:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7e2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('offers',
    sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('category_id', sa.Uuid(), nullable=False),
    sa.Column('image_url', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=True),
    sa.Column('city', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=True),
    sa.Column('link', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
    sa.Column('link_type', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
    sa.Column('merchant_id', sa.Uuid(), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('original_price', sa.Numeric(precision=12, scale=2), nullable=True),
    sa.Column('discounted_price', sa.Numeric(precision=12, scale=2), nullable=True),
    sa.Column('discount_percentage', sa.Integer(), nullable=True),
    sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('is_approved', sa.Boolean(), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('is_featured', sa.Boolean(), nullable=False),
    sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('rejection_reason', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
    sa.Column('reviewed_by', sa.Uuid(), nullable=True),
    sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_offers_category_id'), 'offers', ['category_id'], unique=False)
    op.create_index(op.f('ix_offers_id'), 'offers', ['id'], unique=False)
    op.create_index(op.f('ix_offers_merchant_id'), 'offers', ['merchant_id'], unique=False)
    op.create_index('ix_offers_merchant_rejected', 'offers', ['merchant_id', 'rejected_at'], unique=False)
    op.create_index(op.f('ix_offers_title'), 'offers', ['title'], unique=False)

    op.create_table('subscription_plans',
    sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
    sa.Column('description', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
    sa.Column('price', sa.Integer(), nullable=False),
    sa.Column('currency', sqlmodel.sql.sqltypes.AutoString(length=3), nullable=False),
    sa.Column('billing_period', sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
    sa.Column('offer_limit', sa.Integer(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('sort_order', sa.Integer(), nullable=False),
    sa.Column('is_popular', sa.Boolean(), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('tier', sa.String(length=50), nullable=False),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('tier')
    )
    op.create_index(op.f('ix_subscription_plans_id'), 'subscription_plans', ['id'], unique=False)

    op.create_table('discount_codes',
    sa.Column('merchant_id', sa.Uuid(), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('code', sa.String(length=50), nullable=False),
    sa.Column('description', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
    sa.Column('offer_id', sa.Uuid(), nullable=True),
    sa.Column('discount_type', sa.String(length=20), nullable=False),
    sa.Column('discount_value', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('minimum_order_value', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('max_uses', sa.Integer(), nullable=True),
    sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('usage_count', sa.Integer(), nullable=False),
    sa.Column('total_savings', sa.Numeric(precision=14, scale=2), nullable=False),
    sa.Column('created_by', sa.Uuid(), nullable=True),
    sa.CheckConstraint('usage_count >= 0', name='ck_discount_codes_usage_count_non_negative'),
    sa.CheckConstraint('max_uses IS NULL OR usage_count <= max_uses', name='ck_discount_codes_usage_within_max'),
    sa.ForeignKeyConstraint(['offer_id'], ['offers.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_discount_codes_code', 'discount_codes', ['code'], unique=True)
    op.create_index(op.f('ix_discount_codes_id'), 'discount_codes', ['id'], unique=False)
    op.create_index(op.f('ix_discount_codes_merchant_id'), 'discount_codes', ['merchant_id'], unique=False)
    op.create_index(op.f('ix_discount_codes_offer_id'), 'discount_codes', ['offer_id'], unique=False)

    op.create_table('merchant_subscriptions',
    sa.Column('merchant_id', sa.Uuid(), nullable=False),
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.Column('plan_id', sa.Uuid(), nullable=False),
    sa.Column('status', sa.String(length=20), server_default='active', nullable=False),
    sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
    sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
    sa.Column('auto_renew', sa.Boolean(), nullable=False),
    sa.Column('payment_method', sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
    sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('cancel_reason', sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
    sa.ForeignKeyConstraint(['plan_id'], ['subscription_plans.id'], ondelete='RESTRICT'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_merchant_subscriptions_id'), 'merchant_subscriptions', ['id'], unique=False)
    op.create_index(op.f('ix_merchant_subscriptions_merchant_id'), 'merchant_subscriptions', ['merchant_id'], unique=False)
    op.create_index(op.f('ix_merchant_subscriptions_plan_id'), 'merchant_subscriptions', ['plan_id'], unique=False)
    op.create_index(
        'uq_merchant_subscriptions_one_active',
        'merchant_subscriptions',
        ['merchant_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table('discount_code_usages',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('discount_code_id', sa.Uuid(), nullable=False),
    sa.Column('offer_id', sa.Uuid(), nullable=True),
    sa.Column('order_value', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('redeemed_by', sa.Uuid(), nullable=True),
    sa.Column('redeemed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    sa.ForeignKeyConstraint(['discount_code_id'], ['discount_codes.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_discount_code_usages_code', 'discount_code_usages', ['discount_code_id'], unique=False)
    op.create_index(op.f('ix_discount_code_usages_id'), 'discount_code_usages', ['id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_discount_code_usages_id'), table_name='discount_code_usages')
    op.drop_index('ix_discount_code_usages_code', table_name='discount_code_usages')
    op.drop_table('discount_code_usages')
    op.drop_index('uq_merchant_subscriptions_one_active', table_name='merchant_subscriptions')
    op.drop_index(op.f('ix_merchant_subscriptions_plan_id'), table_name='merchant_subscriptions')
    op.drop_index(op.f('ix_merchant_subscriptions_merchant_id'), table_name='merchant_subscriptions')
    op.drop_index(op.f('ix_merchant_subscriptions_id'), table_name='merchant_subscriptions')
    op.drop_table('merchant_subscriptions')
    op.drop_index(op.f('ix_discount_codes_offer_id'), table_name='discount_codes')
    op.drop_index(op.f('ix_discount_codes_merchant_id'), table_name='discount_codes')
    op.drop_index(op.f('ix_discount_codes_id'), table_name='discount_codes')
    op.drop_index('ix_discount_codes_code', table_name='discount_codes')
    op.drop_table('discount_codes')
    op.drop_index(op.f('ix_subscription_plans_id'), table_name='subscription_plans')
    op.drop_table('subscription_plans')
    op.drop_index(op.f('ix_offers_title'), table_name='offers')
    op.drop_index('ix_offers_merchant_rejected', table_name='offers')
    op.drop_index(op.f('ix_offers_merchant_id'), table_name='offers')
    op.drop_index(op.f('ix_offers_id'), table_name='offers')
    op.drop_index(op.f('ix_offers_category_id'), table_name='offers')
    op.drop_table('offers')
