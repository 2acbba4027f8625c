"""create goal planning tables

Revision ID: create_goal_planning_tables
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_goal_planning_tables'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'goals',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('category', sa.String(32), nullable=False, server_default='Other'),
        sa.Column('target_date', sa.Date, nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('profile', sa.String(16), nullable=False, server_default='Balanced'),
        sa.Column('custom_rate_high', sa.Numeric(6, 4), nullable=True),
        sa.Column('custom_rate_mid', sa.Numeric(6, 4), nullable=True),
        sa.Column('custom_rate_low', sa.Numeric(6, 4), nullable=True),
        sa.Column('payment_frequency', sa.String(16), nullable=False, server_default='Once'),
        sa.Column('payment_period', sa.Integer, nullable=True),
        sa.Column('buffer_months', sa.Integer, nullable=True),
        sa.Column('is_foundational', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_goals_user_id', 'goals', ['user_id'])
    op.create_index('ix_goals_user_active', 'goals', ['user_id', 'is_active'])

    op.create_table(
        'goal_progress',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('goal_id', sa.String(64), sa.ForeignKey('goals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('month_year', sa.Date, nullable=False),
        sa.Column('planned_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('actual_amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('cumulative_planned', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('cumulative_actual', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint('goal_id', 'month_year', name='uq_goal_progress_goal_month'),
    )
    op.create_index('ix_goal_progress_user_id', 'goal_progress', ['user_id'])

    op.create_table(
        'budget_profiles',
        sa.Column('user_id', sa.String(64), primary_key=True),
        sa.Column('monthly_income', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('monthly_expenses', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('funding_style', sa.String(16), nullable=False, server_default='hybrid'),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

def downgrade():
    op.drop_table('budget_profiles')
    op.drop_index('ix_goal_progress_user_id', table_name='goal_progress')
    op.drop_table('goal_progress')
    op.drop_index('ix_goals_user_active', table_name='goals')
    op.drop_index('ix_goals_user_id', table_name='goals')
    op.drop_table('goals')
