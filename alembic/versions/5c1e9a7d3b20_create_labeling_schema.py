"""create labeling schema

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1e9a7d3b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LABEL_TYPES = ('song', 'ad', 'error', 'program')
AD_BREAK_TYPES = ('COMMERCIAL_BREAK', 'SPOT_OUTSIDE_BREAK', 'AUTO_PROMO')


def _recognition_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.BigInteger(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(f'ix_{name}_event_id', name, ['event_id'], unique=False)


def upgrade() -> None:
    """Create users, events with their recognitions, labels, label payloads and memberships."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'events',
        sa.Column('id', sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column('device_id', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('type', sa.Integer(), nullable=False),
        sa.Column('image_path', sa.Text(), nullable=True),
        sa.Column('max_score', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_device_id', 'events', ['device_id'], unique=False)
    op.create_index('ix_events_timestamp', 'events', ['timestamp'], unique=False)

    for name in ('event_ads', 'event_channels', 'event_content'):
        _recognition_table(name)

    op.create_table(
        'labels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('label_type', sa.Enum(*LABEL_TYPES, name='label_type'), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('start_time', sa.BigInteger(), nullable=False),
        sa.Column('end_time', sa.BigInteger(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_labels_label_type', 'labels', ['label_type'], unique=False)
    op.create_index('ix_labels_created_by', 'labels', ['created_by'], unique=False)
    op.create_index('ix_labels_created_at', 'labels', ['created_at'], unique=False)

    op.create_table(
        'label_events',
        sa.Column('label_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['label_id'], ['labels.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('label_id', 'event_id'),
        sa.UniqueConstraint('event_id', name='uq_label_events_event_id'),
    )

    op.create_table(
        'label_songs',
        sa.Column('label_id', sa.Integer(), nullable=False),
        sa.Column('song_name', sa.String(length=255), nullable=False),
        sa.Column('artist', sa.String(length=255), nullable=True),
        sa.Column('album', sa.String(length=255), nullable=True),
        sa.Column('language', sa.String(length=64), nullable=True),
        sa.Column('release_year', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['label_id'], ['labels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('label_id'),
    )
    op.create_table(
        'label_ads',
        sa.Column('label_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.Enum(*AD_BREAK_TYPES, name='ad_break_type'), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('product', sa.String(length=255), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('sector', sa.String(length=255), nullable=True),
        sa.Column('format', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['label_id'], ['labels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('label_id'),
    )
    op.create_table(
        'label_errors',
        sa.Column('label_id', sa.Integer(), nullable=False),
        sa.Column('error_type', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['label_id'], ['labels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('label_id'),
    )
    op.create_table(
        'label_programs',
        sa.Column('label_id', sa.Integer(), nullable=False),
        sa.Column('program_name', sa.String(length=255), nullable=False),
        sa.Column('genre', sa.String(length=255), nullable=True),
        sa.Column('episode_number', sa.Integer(), nullable=True),
        sa.Column('season_number', sa.Integer(), nullable=True),
        sa.Column('language', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['label_id'], ['labels.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('label_id'),
    )


def downgrade() -> None:
    """Drop the labeling schema."""
    for name in ('label_programs', 'label_errors', 'label_ads', 'label_songs', 'label_events'):
        op.drop_table(name)
    op.drop_index('ix_labels_created_at', table_name='labels')
    op.drop_index('ix_labels_created_by', table_name='labels')
    op.drop_index('ix_labels_label_type', table_name='labels')
    op.drop_table('labels')
    for name in ('event_content', 'event_channels', 'event_ads'):
        op.drop_index(f'ix_{name}_event_id', table_name=name)
        op.drop_table(name)
    op.drop_index('ix_events_timestamp', table_name='events')
    op.drop_index('ix_events_device_id', table_name='events')
    op.drop_table('events')
    op.drop_table('users')
    sa.Enum(name='ad_break_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='label_type').drop(op.get_bind(), checkfirst=True)
