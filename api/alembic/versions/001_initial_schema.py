"""initial schema

Revision ID: 001
Revises:
Create Date: 2025-05-02 10:12:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

# Enum columns store member names, matching the SQLModel mapping
USER_ROLE = ('ADMIN', 'USER', 'BUSINESS')
PLACE_CATEGORY = (
    'RESTAURANT', 'CAFE', 'PARK', 'PLAYGROUND', 'MUSEUM',
    'LIBRARY', 'SHOPPING', 'ENTERTAINMENT', 'HEALTHCARE', 'OTHER',
)
PRICE_RANGE = ('INEXPENSIVE', 'MODERATE', 'EXPENSIVE', 'VERY_EXPENSIVE')
CONTRIBUTION_TYPE = ('NEW_PLACE', 'EDIT_PLACE', 'ADD_PHOTO', 'UPDATE_AMENITY', 'REPORT_ISSUE')
CONTRIBUTION_STATUS = ('PENDING', 'APPROVED', 'REJECTED')
SUBSCRIPTION_PLAN = ('FREE', 'PREMIUM_MONTHLY', 'PREMIUM_ANNUAL')
SUBSCRIPTION_STATUS = ('ACTIVE', 'PAST_DUE', 'CANCELED', 'TRIALING')
ARTICLE_CATEGORY = (
    'FEEDING', 'SLEEP', 'DEVELOPMENT', 'HEALTH', 'ACTIVITIES', 'TRAVEL',
    'GEAR', 'PARENTING_TIPS', 'DAD_LIFE', 'MOM_LIFE', 'RELATIONSHIPS', 'MENTAL_HEALTH',
)

ENUM_TYPES = (
    'userrole', 'placecategory', 'pricerange', 'contributiontype',
    'contributionstatus', 'subscriptionplan', 'subscriptionstatus', 'articlecategory',
)

REVIEW_STATS_FUNCTION = """
CREATE OR REPLACE FUNCTION refresh_place_review_stats() RETURNS trigger AS $$
DECLARE
    target_place integer;
BEGIN
    IF TG_OP = 'DELETE' THEN
        target_place := OLD.place_id;
    ELSE
        target_place := NEW.place_id;
    END IF;

    UPDATE place SET
        average_rating = COALESCE((SELECT AVG(rating) FROM review WHERE place_id = target_place), 0),
        review_count = (SELECT COUNT(*) FROM review WHERE place_id = target_place)
    WHERE id = target_place;

    IF TG_OP = 'UPDATE' AND OLD.place_id <> NEW.place_id THEN
        UPDATE place SET
            average_rating = COALESCE((SELECT AVG(rating) FROM review WHERE place_id = OLD.place_id), 0),
            review_count = (SELECT COUNT(*) FROM review WHERE place_id = OLD.place_id)
        WHERE id = OLD.place_id;
    END IF;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

CONTRIBUTION_COUNT_FUNCTION = """
CREATE OR REPLACE FUNCTION refresh_place_contribution_count() RETURNS trigger AS $$
BEGIN
    UPDATE place SET contribution_count = (
        SELECT COUNT(*) FROM contribution WHERE place_id = NEW.place_id
    ) WHERE id = NEW.place_id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""


def upgrade() -> None:
    # Create users table
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('role', postgresql.ENUM(*USER_ROLE, name='userrole'), nullable=False),
        sa.Column('is_premium', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_user_username'), 'user', ['username'], unique=True)

    # Create places table
    op.create_table(
        'place',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('category', postgresql.ENUM(*PLACE_CATEGORY, name='placecategory'), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('zip_code', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=False),
        sa.Column('latitude', sa.Float(precision=53), nullable=False),
        sa.Column('longitude', sa.Float(precision=53), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('hours', postgresql.JSON(), nullable=True),
        sa.Column('price_range', postgresql.ENUM(*PRICE_RANGE, name='pricerange'), nullable=True),
        sa.Column('amenities', postgresql.JSON(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('is_claimed', sa.Boolean(), nullable=False),
        sa.Column('claimed_by', sa.Integer(), nullable=True),
        sa.Column('average_rating', sa.Float(), nullable=False),
        sa.Column('review_count', sa.Integer(), nullable=False),
        sa.Column('contribution_count', sa.Integer(), nullable=False),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['claimed_by'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_place_name'), 'place', ['name'], unique=False)
    op.create_index(op.f('ix_place_slug'), 'place', ['slug'], unique=True)
    op.create_index(op.f('ix_place_category'), 'place', ['category'], unique=False)

    op.create_table(
        'place_image',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('place_id', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('alt', sa.String(), nullable=True),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.Column('uploaded_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['place_id'], ['place.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )

    # Create reviews table
    op.create_table(
        'review',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('place_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('content', sa.String(), nullable=False),
        sa.Column('visit_date', sa.Date(), nullable=True),
        sa.Column('with_children_ages', postgresql.JSON(), nullable=True),
        sa.Column('amenity_ratings', postgresql.JSON(), nullable=True),
        sa.Column('is_verified_visit', sa.Boolean(), nullable=False),
        sa.Column('helpful_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['place_id'], ['place.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='review_rating_range'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'favorite',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('place_id', sa.Integer(), nullable=False),
        sa.Column('note', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['place_id'], ['place.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'contribution',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('place_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', postgresql.ENUM(*CONTRIBUTION_TYPE, name='contributiontype'), nullable=False),
        sa.Column('data', postgresql.JSON(), nullable=True),
        sa.Column('status', postgresql.ENUM(*CONTRIBUTION_STATUS, name='contributionstatus'), nullable=False),
        sa.Column('reviewed_by', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['place_id'], ['place.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.ForeignKeyConstraint(['reviewed_by'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'user_subscription',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('stripe_customer_id', sa.String(), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(), nullable=True),
        sa.Column('plan', postgresql.ENUM(*SUBSCRIPTION_PLAN, name='subscriptionplan'), nullable=False),
        sa.Column('status', postgresql.ENUM(*SUBSCRIPTION_STATUS, name='subscriptionstatus'), nullable=False),
        sa.Column('current_period_start', sa.DateTime(), nullable=True),
        sa.Column('current_period_end', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index(op.f('ix_user_subscription_stripe_customer_id'), 'user_subscription', ['stripe_customer_id'], unique=False)
    op.create_index(op.f('ix_user_subscription_stripe_subscription_id'), 'user_subscription', ['stripe_subscription_id'], unique=False)

    op.create_table(
        'article',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('excerpt', sa.String(), nullable=False),
        sa.Column('content', sa.String(), nullable=False),
        sa.Column('cover_image', sa.String(), nullable=True),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('category', postgresql.ENUM(*ARTICLE_CATEGORY, name='articlecategory'), nullable=False),
        sa.Column('tags', postgresql.JSON(), nullable=True),
        sa.Column('target_ages', postgresql.JSON(), nullable=True),
        sa.Column('read_time_minutes', sa.Integer(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['author_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_article_slug'), 'article', ['slug'], unique=True)
    op.create_index(op.f('ix_article_category'), 'article', ['category'], unique=False)

    # Place aggregates are kept by the database, not by request handlers
    op.execute(REVIEW_STATS_FUNCTION)
    op.execute(
        "CREATE TRIGGER review_stats_refresh AFTER INSERT OR UPDATE OR DELETE ON review "
        "FOR EACH ROW EXECUTE FUNCTION refresh_place_review_stats()"
    )
    op.execute(CONTRIBUTION_COUNT_FUNCTION)
    op.execute(
        "CREATE TRIGGER contribution_count_refresh AFTER INSERT ON contribution "
        "FOR EACH ROW EXECUTE FUNCTION refresh_place_contribution_count()"
    )


def downgrade() -> None:
    op.execute('DROP TRIGGER IF EXISTS contribution_count_refresh ON contribution')
    op.execute('DROP TRIGGER IF EXISTS review_stats_refresh ON review')
    op.execute('DROP FUNCTION IF EXISTS refresh_place_contribution_count()')
    op.execute('DROP FUNCTION IF EXISTS refresh_place_review_stats()')

    # Drop tables in reverse order
    op.drop_table('article')
    op.drop_table('user_subscription')
    op.drop_table('contribution')
    op.drop_table('favorite')
    op.drop_table('review')
    op.drop_table('place_image')
    op.drop_table('place')
    op.drop_table('user')

    # Drop enum types
    for enum_type in ENUM_TYPES:
        op.execute(f'DROP TYPE {enum_type}')
