"""Create users, patients and notifications tables

Revision ID: 001_create_prediction_tables
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_prediction_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('pregnancies', sa.Integer(), nullable=False),
        sa.Column('glucose', sa.Float(), nullable=False),
        sa.Column('blood_pressure', sa.Float(), nullable=False),
        sa.Column('skin_thickness', sa.Float(), nullable=False),
        sa.Column('insulin', sa.Float(), nullable=False),
        sa.Column('bmi', sa.Float(), nullable=False),
        sa.Column('diabetes_pedigree_function', sa.Float(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('prediction', sa.Boolean(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('model_used', sa.Text(), nullable=False),
        sa.Column('risk_level', sa.String(16), nullable=False),
        sa.Column('recommendation', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_patients_id', 'patients', ['id'])
    op.create_index('ix_patients_user_id', 'patients', ['user_id'])
    # Owner listing, newest first
    op.create_index('idx_patients_user_created', 'patients', ['user_id', 'created_at'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_patient_id', 'notifications', ['patient_id'])


def downgrade():
    op.drop_index('ix_notifications_patient_id', table_name='notifications')
    op.drop_index('ix_notifications_id', table_name='notifications')
    op.drop_table('notifications')

    op.drop_index('idx_patients_user_created', table_name='patients')
    op.drop_index('ix_patients_user_id', table_name='patients')
    op.drop_index('ix_patients_id', table_name='patients')
    op.drop_table('patients')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
