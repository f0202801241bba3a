"""initial schema

Revision ID: 3b1f6c2a9d10
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3b1f6c2a9d10'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = {
    'userrole': ('ADMIN', 'COACH', 'SPORTIF', 'SUPER_ADMIN'),
    'eventtype': ('TRAINING', 'MATCH', 'TOURNAMENT'),
    'annotationtype': ('TECHNIQUE', 'POINT_FORT', 'POINT_FAIBLE', 'RECOMMANDATION'),
    'evaluationtype': ('TECHNIQUE', 'PHYSIQUE', 'TACTIQUE', 'MENTAL'),
    'licencestatus': ('ACTIVE', 'EXPIRED', 'SUSPENDED', 'PENDING'),
    'paymentstatus': ('PENDING', 'PAID', 'LATE', 'CANCELLED'),
    'stagestatus': ('OPEN', 'FULL', 'CLOSED', 'CANCELLED'),
}


def enum_column(name):
    # Types are created once up front, several tables share paymentstatus
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def timestamps(updated=True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def installment_columns():
    return [
        sa.Column('installment', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('paid_date', sa.Date(), nullable=True),
        sa.Column('status', enum_column('paymentstatus'), nullable=False),
        sa.Column('method', sa.String(length=50), nullable=True),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ] + timestamps()


def upgrade():
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table('club',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('facebook', sa.String(length=255), nullable=True),
        sa.Column('instagram', sa.String(length=255), nullable=True),
        sa.Column('twitter', sa.String(length=255), nullable=True),
        sa.Column('youtube', sa.String(length=255), nullable=True),
        sa.Column('tiktok', sa.String(length=255), nullable=True),
        sa.Column('linkedin', sa.String(length=255), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_club_name', 'club', ['name'], unique=False)

    op.create_table('user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', enum_column('userrole'), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('email_verify_token', sa.String(length=64), nullable=True),
        sa.Column('club_id', sa.Integer(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['club_id'], ['club.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email_verify_token')
    )
    op.create_index('idx_user_email_lower', 'user', [sa.text('lower(email)')], unique=True)
    op.create_index('idx_user_club', 'user', ['club_id'], unique=False)

    op.create_table('coach',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('qualifications', sa.Text(), nullable=True),
        sa.Column('experience', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('specialties', sa.String(length=255), nullable=True),
        sa.Column('photo_url', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )

    op.create_table('category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('club_id', sa.Integer(), nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['club_id'], ['club.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('club_id', 'name', name='unique_club_category_name')
    )

    op.create_table('coach_categories',
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['category.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['coach_id'], ['coach.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('coach_id', 'category_id')
    )

    op.create_table('team',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category_id', 'name', name='unique_category_team_name')
    )

    op.create_table('sportif',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('position', sa.String(length=50), nullable=True),
        sa.Column('photo_url', sa.Text(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index('idx_sportif_category', 'sportif', ['category_id'], unique=False)
    op.create_index('idx_sportif_team', 'sportif', ['team_id'], unique=False)

    op.create_table('training',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('type', enum_column('eventtype'), nullable=False),
        sa.Column('objectives', sa.Text(), nullable=True),
        sa.Column('report', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('opponent', sa.String(length=100), nullable=True),
        sa.Column('result', sa.String(length=50), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.ForeignKeyConstraint(['coach_id'], ['coach.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_training_category_date', 'training', ['category_id', 'date'], unique=False)
    op.create_index('idx_training_coach', 'training', ['coach_id'], unique=False)

    op.create_table('attendance',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('training_id', sa.Integer(), nullable=False),
        sa.Column('sportif_id', sa.Integer(), nullable=False),
        sa.Column('present', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['sportif_id'], ['sportif.id']),
        sa.ForeignKeyConstraint(['training_id'], ['training.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_attendance_sportif', 'attendance', ['sportif_id'], unique=False)
    op.create_index('idx_attendance_unique', 'attendance', ['training_id', 'sportif_id'], unique=True)

    op.create_table('training_schedule',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        *timestamps(updated=False),
        sa.CheckConstraint('day_of_week BETWEEN 1 AND 7', name='check_schedule_day_of_week'),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_schedule_category_day', 'training_schedule', ['category_id', 'day_of_week'], unique=False)

    op.create_table('annotation',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('type', enum_column('annotationtype'), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('sportif_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['coach_id'], ['coach.id']),
        sa.ForeignKeyConstraint(['sportif_id'], ['sportif.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_annotation_sportif', 'annotation', ['sportif_id'], unique=False)
    op.create_index('idx_annotation_coach', 'annotation', ['coach_id'], unique=False)

    op.create_table('evaluation',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('type', enum_column('evaluationtype'), nullable=False),
        sa.Column('ratings', sa.JSON(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('sportif_id', sa.Integer(), nullable=False),
        sa.Column('coach_id', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['coach_id'], ['coach.id']),
        sa.ForeignKeyConstraint(['sportif_id'], ['sportif.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_evaluation_sportif_date', 'evaluation', ['sportif_id', 'date'], unique=False)

    op.create_table('licence',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sportif_id', sa.Integer(), nullable=False),
        sa.Column('number', sa.String(length=50), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('status', enum_column('licencestatus'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('federation', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_amount', sa.Float(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['sportif_id'], ['sportif.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_licence_sportif', 'licence', ['sportif_id'], unique=False)
    op.create_index('idx_licence_status_expiry', 'licence', ['status', 'expiry_date'], unique=False)

    op.create_table('licence_payment',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('licence_id', sa.Integer(), nullable=False),
        *installment_columns(),
        sa.ForeignKeyConstraint(['licence_id'], ['licence.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_licence_payment_licence', 'licence_payment', ['licence_id', 'installment'], unique=False)

    op.create_table('stage',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('club_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('max_spots', sa.Integer(), nullable=True),
        sa.Column('status', enum_column('stagestatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['club_id'], ['club.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_stage_club_start', 'stage', ['club_id', 'start_date'], unique=False)

    op.create_table('stage_participant',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stage_id', sa.Integer(), nullable=False),
        sa.Column('sportif_id', sa.Integer(), nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['sportif_id'], ['sportif.id']),
        sa.ForeignKeyConstraint(['stage_id'], ['stage.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stage_id', 'sportif_id', name='unique_stage_participant')
    )

    op.create_table('stage_payment',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('participant_id', sa.Integer(), nullable=False),
        *installment_columns(),
        sa.ForeignKeyConstraint(['participant_id'], ['stage_participant.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_stage_payment_participant', 'stage_payment', ['participant_id', 'installment'], unique=False)

    op.create_table('message',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('receiver_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.ForeignKeyConstraint(['receiver_id'], ['user.id']),
        sa.ForeignKeyConstraint(['sender_id'], ['user.id']),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_message_receiver_read', 'message', ['receiver_id', 'is_read'], unique=False)
    op.create_index('idx_message_sender', 'message', ['sender_id'], unique=False)
    op.create_index('idx_message_category', 'message', ['category_id'], unique=False)
    op.create_index('idx_message_team', 'message', ['team_id'], unique=False)

    op.create_table('club_announcement',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('club_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['author_id'], ['user.id']),
        sa.ForeignKeyConstraint(['club_id'], ['club.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_announcement_club_created', 'club_announcement', ['club_id', 'created_at'], unique=False)


def downgrade():
    for table in (
        'club_announcement', 'message', 'stage_payment', 'stage_participant', 'stage',
        'licence_payment', 'licence', 'evaluation', 'annotation', 'training_schedule',
        'attendance', 'training', 'sportif', 'team', 'coach_categories', 'category',
        'coach', 'user', 'club'
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
