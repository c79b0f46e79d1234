"""initial screenshot schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:44.218301

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create screenshots, categories, links and analysis history."""

    # 1. Screenshots catalog
    op.create_table(
        'screenshots',
        sa.Column('id', sa.Uuid(), nullable=False, primary_key=True),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('storage_key', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('analyzed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_important', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('retention_policy', sa.String(), nullable=True),
        sa.Column('importance_level', sa.String(), nullable=True),
        sa.UniqueConstraint('storage_key'),
    )
    op.create_index('ix_screenshots_uploaded_at', 'screenshots', ['uploaded_at'])
    op.create_index('ix_screenshots_is_important', 'screenshots', ['is_important'])
    op.create_index('ix_screenshots_retention_policy', 'screenshots', ['retention_policy'])

    # 2. Categories (name is the race boundary for get-or-create)
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('name'),
    )

    # 3. Screenshot <-> category links
    op.create_table(
        'screenshot_categories',
        sa.Column('screenshot_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['screenshot_id'], ['screenshots.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('screenshot_id', 'category_id'),
    )
    op.create_index('ix_screenshot_categories_screenshot_id', 'screenshot_categories', ['screenshot_id'])
    op.create_index('ix_screenshot_categories_category_id', 'screenshot_categories', ['category_id'])

    # 4. Append-only analysis history
    op.create_table(
        'analysis_results',
        sa.Column('id', sa.Integer(), nullable=False, primary_key=True, autoincrement=True),
        sa.Column('screenshot_id', sa.Uuid(), nullable=False),
        sa.Column('analysis_type', sa.String(), nullable=False),
        sa.Column('result_data', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['screenshot_id'], ['screenshots.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_analysis_results_screenshot_id', 'analysis_results', ['screenshot_id'])
    op.create_index('ix_analysis_results_created_at', 'analysis_results', ['created_at'])


def downgrade() -> None:
    """Drop all screenshot tables."""
    op.drop_table('analysis_results')
    op.drop_table('screenshot_categories')
    op.drop_table('categories')
    op.drop_table('screenshots')
