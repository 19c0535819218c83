"""asaas billing tables and company subscription windows

Revision ID: 3f2c8a91d0b7
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '3f2c8a91d0b7'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'planos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('valor_mensal', sa.Numeric(12, 2), nullable=True),
        sa.Column('valor_anual', sa.Numeric(12, 2), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        'empresas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nome_empresa', sa.String(length=255), nullable=False),
        sa.Column('plano', sa.Integer(), nullable=True),
        sa.Column('ativo', sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column('datacadastro', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('grace_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('subscription_cadence', sa.String(length=16), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(['plano'], ['planos.id'], ondelete="SET NULL"),
        sa.CheckConstraint(
            "subscription_cadence IS NULL OR subscription_cadence IN ('monthly', 'annual')",
            name='ck_empresas_subscription_cadence',
        ),
    )
    op.create_index('ix_empresas_plano', 'empresas', ['plano'])
    op.create_index('ix_empresas_current_period_end', 'empresas', ['current_period_end'])

    op.create_table(
        'clientes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nome', sa.String(length=255), nullable=False),
        sa.Column('empresa_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete="CASCADE"),
    )
    op.create_index('ix_clientes_empresa_id', 'clientes', ['empresa_id'])

    op.create_table(
        'financial_flows',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('descricao', sa.String(length=255), nullable=True),
        sa.Column('valor', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default=sa.text("'pendente'")),
        sa.Column('pagamento', sa.DateTime(timezone=True), nullable=True),
        sa.Column('empresa_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(['empresa_id'], ['empresas.id'], ondelete="CASCADE"),
    )
    op.create_index('ix_financial_flows_empresa_id', 'financial_flows', ['empresa_id'])

    op.create_table(
        'asaas_credentials',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('integration_api_key_id', sa.Integer(), nullable=False),
        sa.Column('webhook_secret', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index('ix_asaas_credentials_integration_api_key_id', 'asaas_credentials', ['integration_api_key_id'], unique=True)

    op.create_table(
        'asaas_charges',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('asaas_charge_id', sa.String(length=64), nullable=False),
        sa.Column('credential_id', sa.Integer(), nullable=True),
        sa.Column('financial_flow_id', sa.Integer(), nullable=True),
        sa.Column('cliente_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column('last_event', sa.String(length=64), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payload', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(['credential_id'], ['asaas_credentials.id'], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(['financial_flow_id'], ['financial_flows.id'], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(['cliente_id'], ['clientes.id'], ondelete="SET NULL"),
    )
    op.create_index('ix_asaas_charges_asaas_charge_id', 'asaas_charges', ['asaas_charge_id'], unique=True)
    op.create_index('ix_asaas_charges_credential_id', 'asaas_charges', ['credential_id'])
    op.create_index('ix_asaas_charges_status', 'asaas_charges', ['status'])


def downgrade():
    op.drop_index('ix_asaas_charges_status', table_name='asaas_charges')
    op.drop_index('ix_asaas_charges_credential_id', table_name='asaas_charges')
    op.drop_index('ix_asaas_charges_asaas_charge_id', table_name='asaas_charges')
    op.drop_table('asaas_charges')

    op.drop_index('ix_asaas_credentials_integration_api_key_id', table_name='asaas_credentials')
    op.drop_table('asaas_credentials')

    op.drop_index('ix_financial_flows_empresa_id', table_name='financial_flows')
    op.drop_table('financial_flows')

    op.drop_index('ix_clientes_empresa_id', table_name='clientes')
    op.drop_table('clientes')

    op.drop_index('ix_empresas_current_period_end', table_name='empresas')
    op.drop_index('ix_empresas_plano', table_name='empresas')
    op.drop_table('empresas')

    op.drop_table('planos')
