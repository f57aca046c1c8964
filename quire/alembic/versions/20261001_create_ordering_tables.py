"""create teams, users, documents, collections, pins, stars and events

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-01 09:00:00.000000

Order keys use a byte-order collation so the database sorts them the same
way the key generator compares them.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a2b3c4d5e6f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _order_key() -> sa.types.TypeEngine:
    return (
        sa.String(length=255)
        .with_variant(sa.String(length=255, collation='C'), 'postgresql')
        .with_variant(sa.String(length=255, collation='utf8mb4_bin'), 'mysql', 'mariadb')
    )


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sa_orm_sentinel', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'teams',
        *_audit_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        *_audit_columns(),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_team_id', 'users', ['team_id'])

    op.create_table(
        'collections',
        *_audit_columns(),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('index', _order_key(), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_collections_team_id', 'collections', ['team_id'])

    op.create_table(
        'documents',
        *_audit_columns(),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('collection_id', sa.Uuid(), nullable=True),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_documents_team_id', 'documents', ['team_id'])
    op.create_index('ix_documents_collection_id', 'documents', ['collection_id'])

    op.create_table(
        'pins',
        *_audit_columns(),
        sa.Column('team_id', sa.Uuid(), nullable=False),
        sa.Column('collection_id', sa.Uuid(), nullable=True),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('index', _order_key(), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_pins_team_id_collection_id', 'pins', ['team_id', 'collection_id'])
    op.create_index('ix_pins_document_id', 'pins', ['document_id'])

    op.create_table(
        'stars',
        *_audit_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=True),
        sa.Column('collection_id', sa.Uuid(), nullable=True),
        sa.Column('index', _order_key(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['collection_id'], ['collections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'document_id', name='uq_stars_user_document'),
        sa.UniqueConstraint('user_id', 'collection_id', name='uq_stars_user_collection'),
        sa.CheckConstraint('(document_id IS NULL) <> (collection_id IS NULL)', name='single_target'),
    )
    op.create_index('ix_stars_user_id', 'stars', ['user_id'])

    op.create_table(
        'events',
        *_audit_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=True),
        sa.Column('team_id', sa.Uuid(), nullable=True),
        sa.Column('collection_id', sa.Uuid(), nullable=True),
        sa.Column('document_id', sa.Uuid(), nullable=True),
        sa.Column('model_id', sa.Uuid(), nullable=True),
        sa.Column('data_json', sa.Text(), nullable=False, server_default='{}'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_model_id', 'events', ['model_id'])
    op.create_index('ix_events_name_created_at', 'events', ['name', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_events_name_created_at', table_name='events')
    op.drop_index('ix_events_model_id', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_stars_user_id', table_name='stars')
    op.drop_table('stars')
    op.drop_index('ix_pins_document_id', table_name='pins')
    op.drop_index('ix_pins_team_id_collection_id', table_name='pins')
    op.drop_table('pins')
    op.drop_index('ix_documents_collection_id', table_name='documents')
    op.drop_index('ix_documents_team_id', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_collections_team_id', table_name='collections')
    op.drop_table('collections')
    op.drop_index('ix_users_team_id', table_name='users')
    op.drop_table('users')
    op.drop_table('teams')
