from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('vendor_name', sa.String(200), nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False)
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('assigned_vendor_id', sa.String(64), nullable=True),
        sa.Column('order_number', sa.String(100), nullable=True),
        sa.Column('customer_name', sa.String(200), nullable=True),
        sa.Column('shipping_address', sa.Text, nullable=True),
        sa.Column('carrier', sa.String(20), nullable=True),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('tracking_url', sa.Text, nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('issue_reason', sa.String(50), nullable=True),
        sa.Column('ship_date', sa.String(40), nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True)
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_assigned_vendor_id', 'orders', ['assigned_vendor_id'])
    op.create_index('ix_orders_updated_at', 'orders', ['updated_at'])

def downgrade():
    op.drop_index('ix_orders_updated_at')
    op.drop_index('ix_orders_assigned_vendor_id')
    op.drop_index('ix_orders_order_number')
    op.drop_table('orders')
    op.drop_table('profiles')
