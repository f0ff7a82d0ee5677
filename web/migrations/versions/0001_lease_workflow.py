from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_lease_workflow'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=100), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='user'),
        sa.Column('first', sa.String(length=50), nullable=False),
        sa.Column('last', sa.String(length=50), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'apartments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('apartment_number', sa.String(length=20), nullable=False),
        sa.Column('owner_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('tenant_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('monthly_rent', sa.Numeric(10, 2), nullable=True),
        sa.Column('sale_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_listed_for_rent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_listed_for_sale', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='vacant'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_apartments_owner_id', 'apartments', ['owner_id'])
    op.create_index('ix_apartments_tenant_id', 'apartments', ['tenant_id'])
    op.create_index('ix_apartments_status', 'apartments', ['status'])

    op.create_table(
        'lease_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('apartment_id', sa.Integer(), sa.ForeignKey('apartments.id'), nullable=False),
        sa.Column('requester_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('type', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('monthly_rent', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('contact_name', sa.String(length=100), nullable=True),
        sa.Column('contact_email', sa.String(length=100), nullable=True),
        sa.Column('contact_phone', sa.String(length=20), nullable=True),
        sa.Column('decision_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('decision_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_lease_requests_apartment_id', 'lease_requests', ['apartment_id'])
    op.create_index('ix_lease_requests_requester_id', 'lease_requests', ['requester_id'])
    op.create_index('ix_lease_requests_status', 'lease_requests', ['status'])
    op.create_index('ix_lease_requests_type', 'lease_requests', ['type'])


def downgrade() -> None:
    op.drop_index('ix_lease_requests_type', table_name='lease_requests')
    op.drop_index('ix_lease_requests_status', table_name='lease_requests')
    op.drop_index('ix_lease_requests_requester_id', table_name='lease_requests')
    op.drop_index('ix_lease_requests_apartment_id', table_name='lease_requests')
    op.drop_table('lease_requests')

    op.drop_index('ix_apartments_status', table_name='apartments')
    op.drop_index('ix_apartments_tenant_id', table_name='apartments')
    op.drop_index('ix_apartments_owner_id', table_name='apartments')
    op.drop_table('apartments')

    op.drop_table('users')
