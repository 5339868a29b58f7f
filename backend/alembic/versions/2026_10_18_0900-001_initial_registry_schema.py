"""Initial registry schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from geoalchemy2 import Geometry

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # Create ENUM types if they don't exist
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE agencysource AS ENUM ('imported_registry', 'derived_from_feed');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE reviewtype AS ENUM ('no_agency', 'agency_multiple_areas', 'no_metro');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE feedparsestatus AS ENUM ('unparsed', 'successful', 'failed');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE defaultbikesallowed AS ENUM ('allow', 'disallow', 'warn');
        EXCEPTION
            WHEN duplicate_object THEN null;
        END $$;
    """)

    agency_source = postgresql.ENUM(name='agencysource', create_type=False)
    review_type = postgresql.ENUM(name='reviewtype', create_type=False)
    feed_parse_status = postgresql.ENUM(name='feedparsestatus', create_type=False)
    default_bikes_allowed = postgresql.ENUM(name='defaultbikesallowed', create_type=False)

    # Agencies table
    op.create_table(
        'agencies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('canonical_host', sa.String(length=255), nullable=True),
        sa.Column('external_id', sa.String(length=50), nullable=True),
        sa.Column('uza_names', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('population', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ridership', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('passenger_miles', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('source', agency_source, nullable=False, server_default='imported_registry'),
        sa.Column('review', review_type, nullable=True),
        sa.Column('google_gtfs', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_agencies_id', 'agencies', ['id'])
    op.create_index('ix_agencies_name', 'agencies', ['name'])
    op.create_index('ix_agencies_canonical_host', 'agencies', ['canonical_host'])
    op.create_index('ix_agencies_review', 'agencies', ['review'])

    # Feeds table
    op.create_table(
        'feeds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('agency_name', sa.String(length=255), nullable=False),
        sa.Column('agency_url', sa.String(length=500), nullable=True),
        sa.Column('area_description', sa.String(length=255), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('catalog_id', sa.String(length=255), nullable=True),
        sa.Column('catalog_url', sa.String(length=500), nullable=True),
        sa.Column('timezone', sa.String(length=100), nullable=True),
        sa.Column('date_added', sa.DateTime(timezone=True), nullable=True),
        sa.Column('date_updated', sa.DateTime(timezone=True), nullable=True),
        sa.Column('disabled', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('review', review_type, nullable=True),
        sa.Column('feed_base_url', sa.String(length=500), nullable=True),
        sa.Column('download_url', sa.String(length=500), nullable=True),
        sa.Column('realtime_urls', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('license_url', sa.String(length=500), nullable=True),
        sa.Column('official', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('default_bikes_allowed', default_bikes_allowed, nullable=False, server_default='warn'),
        sa.Column('status', feed_parse_status, nullable=True),
        sa.Column('trips', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('trips_per_calendar', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('stops', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('expiration_date', sa.Date(), nullable=True),
        sa.Column('geom', Geometry('MULTIPOLYGON', spatial_index=False), nullable=True),
        sa.Column('superseded_by_id', sa.Integer(), nullable=True),
        sa.Column('stored_id', sa.String(length=500), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['superseded_by_id'], ['feeds.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_feeds_id', 'feeds', ['id'])
    op.create_index('ix_feeds_catalog_id', 'feeds', ['catalog_id'])
    op.create_index('ix_feeds_review', 'feeds', ['review'])
    op.create_index('ix_feeds_superseded_by_id', 'feeds', ['superseded_by_id'])
    op.create_index('idx_feeds_geom', 'feeds', ['geom'], postgresql_using='gist')

    # Regions table
    op.create_table(
        'regions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('geom', Geometry('MULTIPOLYGON', spatial_index=False), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_regions_id', 'regions', ['id'])
    op.create_index('ix_regions_name', 'regions', ['name'])
    op.create_index('idx_regions_geom', 'regions', ['geom'], postgresql_using='gist')

    # Agency <-> feed association
    op.create_table(
        'agency_feeds',
        sa.Column('agency_id', sa.Integer(), nullable=False),
        sa.Column('feed_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['agency_id'], ['agencies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['feed_id'], ['feeds.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('agency_id', 'feed_id')
    )

    # Region membership
    op.create_table(
        'region_agencies',
        sa.Column('region_id', sa.Integer(), nullable=False),
        sa.Column('agency_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['region_id'], ['regions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['agency_id'], ['agencies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('region_id', 'agency_id')
    )


def downgrade() -> None:
    op.drop_table('region_agencies')
    op.drop_table('agency_feeds')

    op.drop_index('idx_regions_geom', table_name='regions')
    op.drop_index('ix_regions_name', table_name='regions')
    op.drop_index('ix_regions_id', table_name='regions')
    op.drop_table('regions')

    op.drop_index('idx_feeds_geom', table_name='feeds')
    op.drop_index('ix_feeds_superseded_by_id', table_name='feeds')
    op.drop_index('ix_feeds_review', table_name='feeds')
    op.drop_index('ix_feeds_catalog_id', table_name='feeds')
    op.drop_index('ix_feeds_id', table_name='feeds')
    op.drop_table('feeds')

    op.drop_index('ix_agencies_review', table_name='agencies')
    op.drop_index('ix_agencies_canonical_host', table_name='agencies')
    op.drop_index('ix_agencies_name', table_name='agencies')
    op.drop_index('ix_agencies_id', table_name='agencies')
    op.drop_table('agencies')

    op.execute("DROP TYPE IF EXISTS defaultbikesallowed")
    op.execute("DROP TYPE IF EXISTS feedparsestatus")
    op.execute("DROP TYPE IF EXISTS reviewtype")
    op.execute("DROP TYPE IF EXISTS agencysource")
