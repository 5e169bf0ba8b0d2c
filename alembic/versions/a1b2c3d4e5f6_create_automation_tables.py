"""Create automation tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='user'),
        sa.Column('company_id', sa.String(36), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_company_id', 'users', ['company_id'], unique=False)

    op.create_table('automations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('space_id', sa.String(36), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('trigger_type', sa.String(20), nullable=False, server_default='manual'),
        sa.Column('trigger_config', sa.JSON(), nullable=True),
        sa.Column('run_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('success_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('failure_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_run_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_automations_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_automations'),
    )
    op.create_index('ix_automations_user_id', 'automations', ['user_id'], unique=False)
    op.create_index('ix_automations_space_id', 'automations', ['space_id'], unique=False)
    op.create_index('ix_automations_trigger_type', 'automations', ['trigger_type'], unique=False)

    op.create_table('automation_nodes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('automation_id', sa.String(36), nullable=False),
        sa.Column('node_type', sa.String(20), nullable=False),
        sa.Column('node_subtype', sa.String(50), nullable=True),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('config', sa.JSON(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('position_x', sa.Float(), nullable=True),
        sa.Column('position_y', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], ondelete='CASCADE',
                                name='fk_automation_nodes_automation_id_automations'),
        sa.PrimaryKeyConstraint('id', name='pk_automation_nodes'),
    )
    op.create_index('ix_automation_nodes_automation_id', 'automation_nodes', ['automation_id'], unique=False)

    op.create_table('automation_connections',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('automation_id', sa.String(36), nullable=False),
        sa.Column('source_node_id', sa.String(36), nullable=False),
        sa.Column('target_node_id', sa.String(36), nullable=False),
        sa.Column('condition_type', sa.String(20), nullable=True),
        sa.Column('condition_config', sa.JSON(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], ondelete='CASCADE',
                                name='fk_automation_connections_automation_id_automations'),
        sa.ForeignKeyConstraint(['source_node_id'], ['automation_nodes.id'], ondelete='CASCADE',
                                name='fk_automation_connections_source_node_id_automation_nodes'),
        sa.ForeignKeyConstraint(['target_node_id'], ['automation_nodes.id'], ondelete='CASCADE',
                                name='fk_automation_connections_target_node_id_automation_nodes'),
        sa.PrimaryKeyConstraint('id', name='pk_automation_connections'),
    )
    op.create_index('ix_automation_connections_automation_id', 'automation_connections', ['automation_id'], unique=False)
    op.create_index('ix_automation_connections_target_node_id', 'automation_connections', ['target_node_id'], unique=False)

    op.create_table('automation_executions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('automation_id', sa.String(36), nullable=False),
        sa.Column('trigger_data', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='running'),
        sa.Column('execution_data', sa.JSON(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('execution_time_ms', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['automation_id'], ['automations.id'], ondelete='CASCADE',
                                name='fk_automation_executions_automation_id_automations'),
        sa.PrimaryKeyConstraint('id', name='pk_automation_executions'),
    )
    op.create_index('ix_automation_executions_automation_id', 'automation_executions', ['automation_id'], unique=False)
    op.create_index('ix_automation_executions_status', 'automation_executions', ['status'], unique=False)

    op.create_table('tasks',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='todo'),
        sa.Column('priority', sa.String(20), nullable=False, server_default='normal'),
        sa.Column('project_id', sa.String(36), nullable=True),
        sa.Column('assigned_to', sa.String(36), nullable=True),
        sa.Column('due_date', sa.String(40), nullable=True),
        sa.Column('estimated_hours', sa.Float(), nullable=True),
        sa.Column('actual_hours', sa.Float(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_tasks'),
    )
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'], unique=False)

    op.create_table('task_activities',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('task_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE',
                                name='fk_task_activities_task_id_tasks'),
        sa.PrimaryKeyConstraint('id', name='pk_task_activities'),
    )
    op.create_index('ix_task_activities_task_id', 'task_activities', ['task_id'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    # Drop tables in reverse order
    op.drop_index('ix_task_activities_task_id', table_name='task_activities')
    op.drop_table('task_activities')
    op.drop_index('ix_tasks_project_id', table_name='tasks')
    op.drop_table('tasks')
    op.drop_index('ix_automation_executions_status', table_name='automation_executions')
    op.drop_index('ix_automation_executions_automation_id', table_name='automation_executions')
    op.drop_table('automation_executions')
    op.drop_index('ix_automation_connections_target_node_id', table_name='automation_connections')
    op.drop_index('ix_automation_connections_automation_id', table_name='automation_connections')
    op.drop_table('automation_connections')
    op.drop_index('ix_automation_nodes_automation_id', table_name='automation_nodes')
    op.drop_table('automation_nodes')
    op.drop_index('ix_automations_trigger_type', table_name='automations')
    op.drop_index('ix_automations_space_id', table_name='automations')
    op.drop_index('ix_automations_user_id', table_name='automations')
    op.drop_table('automations')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
