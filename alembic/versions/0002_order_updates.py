"""add_order_updates_audit_table

Revision ID: 0002
Revises: 0001_init

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002'
down_revision = '0001_init'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'order_updates',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.String(36), nullable=False),
        sa.Column('updated_by', sa.String(64), nullable=True),
        sa.Column('field', sa.String(50), nullable=False),
        sa.Column('old_value', sa.Text, nullable=False, server_default=''),
        sa.Column('new_value', sa.Text, nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime, nullable=False)
    )
    op.create_index('ix_order_updates_order_id', 'order_updates', ['order_id'])


def downgrade() -> None:
    op.drop_index('ix_order_updates_order_id')
    op.drop_table('order_updates')
