from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def _audit_columns():
    return [
        sa.Column('active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, nullable=True),
        sa.Column('updated_at', sa.DateTime, nullable=True),
        sa.Column('created_by', sa.String(length=50), nullable=True),
        sa.Column('updated_by', sa.String(length=50), nullable=True),
    ]

def upgrade():
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('firstname', sa.String(length=50), nullable=False),
        sa.Column('lastname', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.String(length=200), nullable=True),
        *_audit_columns()
    )
    op.create_index('idx_customer_email', 'customers', ['email'])
    op.create_index('idx_customer_active', 'customers', ['active'])
    # Email is unique among active customers only
    op.create_index(
        'uq_customers_email_active', 'customers', ['email'], unique=True,
        postgresql_where=sa.text('active'),
        sqlite_where=sa.text('active = 1'),
    )

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('firstname', sa.String(length=50), nullable=False),
        sa.Column('lastname', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False, unique=True),
        sa.Column('position', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        *_audit_columns()
    )

    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.String(length=200), nullable=True),
        *_audit_columns()
    )

def downgrade():
    op.drop_table('suppliers')
    op.drop_table('employees')
    op.drop_index('uq_customers_email_active', table_name='customers')
    op.drop_index('idx_customer_active', table_name='customers')
    op.drop_index('idx_customer_email', table_name='customers')
    op.drop_table('customers')
