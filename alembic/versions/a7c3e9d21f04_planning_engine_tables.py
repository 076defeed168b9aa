"""planning_engine_tables

Revision ID: a7c3e9d21f04
Revises:
Create Date: 2026-10-16 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = 'a7c3e9d21f04'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('clients',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('advisor_id', sqlmodel.sql.sqltypes.GUID(), nullable=True),
        sa.Column('first_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('last_name', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('email', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('financial_facts', sa.JSON(), nullable=True),
        sa.Column('goals', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_clients_email', 'clients', ['email'])

    # Append-only plan versions
    op.create_table('financial_plans',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('client_id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('advisor_id', sqlmodel.sql.sqltypes.GUID(), nullable=True),
        sa.Column('plan_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default="cash_flow"),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default="draft"),
        sa.Column('summary', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default=""),
        sa.Column('version', sa.Integer(), nullable=False, server_default="1"),
        sa.Column('key_metrics', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('client_id', 'plan_type', 'version', name='uq_financial_plans_version')
    )
    op.create_index('ix_financial_plans_client_id', 'financial_plans', ['client_id'])

    op.create_table('plan_comparisons',
        sa.Column('id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('client_id', sqlmodel.sql.sqltypes.GUID(), nullable=False),
        sa.Column('advisor_id', sqlmodel.sql.sqltypes.GUID(), nullable=True),
        sa.Column('comparison_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('notes', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('plan_a', sa.JSON(), nullable=False),
        sa.Column('plan_b', sa.JSON(), nullable=False),
        sa.Column('state', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default="CREATED"),
        sa.Column('ai_analysis', sa.JSON(), nullable=True),
        sa.Column('selected_winner', sa.JSON(), nullable=True),
        sa.Column('tags', sa.JSON(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_viewed_at', sa.DateTime(), nullable=True),
        sa.Column('change_history', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_plan_comparisons_client_id', 'plan_comparisons', ['client_id'])
    op.create_index('ix_plan_comparisons_comparison_type', 'plan_comparisons', ['comparison_type'])
    op.create_index('ix_plan_comparisons_state', 'plan_comparisons', ['state'])
    op.create_index('ix_plan_comparisons_created_at', 'plan_comparisons', ['created_at'])


def downgrade() -> None:
    op.drop_table('plan_comparisons')
    op.drop_table('financial_plans')
    op.drop_index('ix_clients_email', table_name='clients')
    op.drop_table('clients')
