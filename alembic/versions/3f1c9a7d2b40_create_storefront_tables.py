"""create_storefront_tables

Revision ID: 3f1c9a7d2b40
Revises:
Create Date: 2025-07-27 14:02:38.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = [
    'profiles',
    'categories',
    'products',
    'cart_items',
    'orders',
    'order_items',
    'favorites',
]

ADMIN_CHECK = (
    "EXISTS (SELECT 1 FROM profiles WHERE id = auth.uid() AND is_admin = true)"
)

# (table, policy name, command, roles, USING, WITH CHECK)
POLICIES = [
    ('profiles', 'Users can read own profile', 'SELECT', 'authenticated', 'auth.uid() = id', None),
    ('profiles', 'Users can update own profile', 'UPDATE', 'authenticated', 'auth.uid() = id', None),
    ('profiles', 'Users can insert own profile', 'INSERT', 'authenticated', None, 'auth.uid() = id'),
    ('categories', 'Anyone can read categories', 'SELECT', 'authenticated, anon', 'true', None),
    ('categories', 'Admins can manage categories', 'ALL', 'authenticated', ADMIN_CHECK, None),
    ('products', 'Anyone can read active products', 'SELECT', 'authenticated, anon', 'is_active = true', None),
    ('products', 'Admins can manage products', 'ALL', 'authenticated', ADMIN_CHECK, None),
    ('cart_items', 'Users can manage own cart', 'ALL', 'authenticated', 'auth.uid() = user_id', None),
    ('orders', 'Users can read own orders', 'SELECT', 'authenticated', 'auth.uid() = user_id', None),
    ('orders', 'Users can create own orders', 'INSERT', 'authenticated', None, 'auth.uid() = user_id'),
    ('orders', 'Admins can read all orders', 'SELECT', 'authenticated', ADMIN_CHECK, None),
    ('orders', 'Admins can update orders', 'UPDATE', 'authenticated', ADMIN_CHECK, None),
    (
        'order_items', 'Users can read own order items', 'SELECT', 'authenticated',
        'EXISTS (SELECT 1 FROM orders WHERE id = order_id AND user_id = auth.uid())', None,
    ),
    (
        'order_items', 'Users can create order items for own orders', 'INSERT', 'authenticated',
        None,
        'EXISTS (SELECT 1 FROM orders WHERE id = order_id AND user_id = auth.uid())'
        ' AND NOT EXISTS (SELECT 1 FROM order_items existing WHERE existing.order_id = order_items.order_id)',
    ),
    ('order_items', 'Admins can read all order items', 'SELECT', 'authenticated', ADMIN_CHECK, None),
    ('favorites', 'Users can manage own favorites', 'ALL', 'authenticated', 'auth.uid() = user_id', None),
]


def _timestamps(*, updated: bool = True) -> list:
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True)
        )
    return columns


def _policy_sql(table, name, command, roles, using, check) -> str:
    sql = f'CREATE POLICY "{name}" ON {table} FOR {command} TO {roles}'
    if using:
        sql += f' USING ({using})'
    if check:
        sql += f' WITH CHECK ({check})'
    return sql


def upgrade() -> None:
    """Upgrade schema - Create storefront tables and row-level security."""
    uuid_pk = lambda: sa.Column(  # noqa: E731
        'id', UUID(as_uuid=False), server_default=sa.text('gen_random_uuid()'), nullable=False
    )

    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=False), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), server_default='false', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_profiles'),
    )

    op.create_table(
        'categories',
        uuid_pk(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
    )

    op.create_table(
        'products',
        uuid_pk(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('category_id', UUID(as_uuid=False), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('images', ARRAY(sa.Text()), server_default='{}', nullable=True),
        sa.Column('stock_quantity', sa.Integer(), server_default='0', nullable=True),
        sa.Column('is_featured', sa.Boolean(), server_default='false', nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=True),
        sa.Column('rating', sa.Numeric(3, 2), server_default='0', nullable=True),
        sa.Column('review_count', sa.Integer(), server_default='0', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'],
            name='fk_products_category_id_categories', ondelete='SET NULL',
        ),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_products_rating_range'),
    )

    op.create_table(
        'cart_items',
        uuid_pk(),
        sa.Column('user_id', UUID(as_uuid=False), nullable=False),
        sa.Column('product_id', UUID(as_uuid=False), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default='1', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_cart_items'),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_cart_items_product_id_products', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_cart_items_user_product'),
        sa.CheckConstraint('quantity > 0', name='ck_cart_items_quantity_positive'),
    )

    op.create_table(
        'orders',
        uuid_pk(),
        sa.Column('user_id', UUID(as_uuid=False), nullable=False),
        sa.Column('status', sa.String(length=20), server_default='pending', nullable=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping_address', JSONB(), nullable=False),
        sa.Column('payment_status', sa.String(length=20), server_default='pending', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'shipped', 'delivered', 'cancelled')",
            name='ck_orders_status_valid',
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
            name='ck_orders_payment_status_valid',
        ),
        sa.CheckConstraint('total_amount >= 0', name='ck_orders_total_non_negative'),
    )
    op.create_index('ix_orders_user_id_created_at', 'orders', ['user_id', 'created_at'])

    op.create_table(
        'order_items',
        uuid_pk(),
        sa.Column('order_id', UUID(as_uuid=False), nullable=False),
        sa.Column('product_id', UUID(as_uuid=False), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_items_order_id_orders', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_order_items_product_id_products', ondelete='CASCADE',
        ),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('price >= 0', name='ck_order_items_price_non_negative'),
    )

    op.create_table(
        'favorites',
        uuid_pk(),
        sa.Column('user_id', UUID(as_uuid=False), nullable=False),
        sa.Column('product_id', UUID(as_uuid=False), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id', name='pk_favorites'),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_favorites_product_id_products', ondelete='CASCADE',
        ),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_favorites_user_product'),
    )

    # Row-level security only applies on Supabase, where auth.uid() exists.
    # Elsewhere the service enforces the same rules in PolicyRecordStore.
    statements = [f'ALTER TABLE {t} ENABLE ROW LEVEL SECURITY' for t in TABLES]
    statements += [_policy_sql(*policy) for policy in POLICIES]
    body = '\n'.join(
        "    EXECUTE '{}';".format(s.replace("'", "''")) for s in statements
    )
    op.execute(
        "DO $$\nBEGIN\n"
        "  IF to_regprocedure('auth.uid()') IS NOT NULL THEN\n"
        f"{body}\n"
        "  END IF;\n"
        "END $$;"
    )


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables (policies go with them)."""
    op.drop_table('favorites')
    op.drop_table('order_items')
    op.drop_index('ix_orders_user_id_created_at', table_name='orders')
    op.drop_table('orders')
    op.drop_table('cart_items')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('profiles')
