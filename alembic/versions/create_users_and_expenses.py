"""Create users and expenses tables

Revision ID: create_users_and_expenses
Revises:
Create Date: 2024-03-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_users_and_expenses'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_table('expenses',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('owner_id', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        # Nullable + unique: only expenses that carry a key are constrained
        sa.Column('idempotency_key', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key')
    )
    op.create_index('ix_expenses_owner_id', 'expenses', ['owner_id'])
    op.create_index('ix_expenses_owner_category', 'expenses', ['owner_id', 'category'])
    op.create_index('ix_expenses_owner_date', 'expenses', ['owner_id', 'date'])

def downgrade():
    op.drop_index('ix_expenses_owner_date', table_name='expenses')
    op.drop_index('ix_expenses_owner_category', table_name='expenses')
    op.drop_index('ix_expenses_owner_id', table_name='expenses')
    op.drop_table('expenses')
    op.drop_table('users')
