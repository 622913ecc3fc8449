"""create_storage_records

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 10:12:41.318204

"""
from alembic import op
import sqlalchemy as sa


revision = '3f1c9a2b7d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'storage_records',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )


def downgrade() -> None:
    op.drop_table('storage_records')
