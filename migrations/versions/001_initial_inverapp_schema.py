"""Initial InverApp schema: stock, brokers, policies, UF history, quotations,
commission settlements, reservations and email logs.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'stock_unidades',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('proyecto_nombre', sa.String(length=128), nullable=False),
        sa.Column('unidad', sa.String(length=64), nullable=False),
        sa.Column('tipologia', sa.String(length=64)),
        sa.Column('tipo_bien', sa.String(length=64), nullable=False, server_default='DEPARTAMENTO'),
        sa.Column('piso', sa.String(length=16)),
        sa.Column('orientacion', sa.String(length=32)),
        sa.Column('etapa', sa.String(length=64)),
        sa.Column('sup_util', sa.Float()),
        sa.Column('sup_terraza', sa.Float()),
        sa.Column('sup_total', sa.Float()),
        sa.Column('valor_lista', sa.Float()),
        sa.Column('descuento', sa.Float()),
        sa.Column('estado_unidad', sa.String(length=32), server_default='Disponible'),
    )
    op.create_index('ix_stock_unidades_proyecto_nombre', 'stock_unidades', ['proyecto_nombre'])
    op.create_index('ix_stock_unidades_tipo_bien', 'stock_unidades', ['tipo_bien'])
    op.create_index('ix_stock_unidades_estado_unidad', 'stock_unidades', ['estado_unidad'])

    op.create_table(
        'brokers',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('business_name', sa.String(length=128)),
        sa.Column('email', sa.String(length=120)),
        sa.Column('slug', sa.String(length=128)),
        sa.Column('public_access_token', sa.String(length=128)),
    )
    op.create_index('ix_brokers_slug', 'brokers', ['slug'], unique=True)

    op.create_table(
        'broker_project_commissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('broker_id', sa.String(length=64), sa.ForeignKey('brokers.id'), nullable=False),
        sa.Column('project_name', sa.String(length=128), nullable=False),
        sa.Column('commission_rate', sa.Float()),
    )
    op.create_index('ix_broker_project_commissions_broker_id', 'broker_project_commissions', ['broker_id'])
    op.create_index('ix_broker_project_commissions_project_name', 'broker_project_commissions', ['project_name'])

    op.create_table(
        'project_commercial_policies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('monto_reserva_pesos', sa.Float()),
        sa.Column('bono_pie_max_pct', sa.Float()),
        sa.Column('fecha_tope', sa.Date()),
        sa.Column('observaciones', sa.Text()),
        sa.Column('comuna', sa.String(length=128)),
    )

    op.create_table(
        'valores_financieros',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(length=32), nullable=False),
        sa.Column('valor', sa.Float(), nullable=False),
        sa.Column('fecha', sa.Date(), nullable=False),
        sa.UniqueConstraint('nombre', 'fecha', name='uq_valores_financieros_nombre_fecha'),
    )
    op.create_index('ix_valores_financieros_nombre', 'valores_financieros', ['nombre'])
    op.create_index('ix_valores_financieros_fecha', 'valores_financieros', ['fecha'])

    op.create_table(
        'broker_quotations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('broker_id', sa.String(length=64), sa.ForeignKey('brokers.id'), nullable=True),
        sa.Column('broker_name', sa.String(length=128)),
        sa.Column('project_name', sa.String(length=128)),
        sa.Column('unidad', sa.String(length=64)),
        sa.Column('quotation_type', sa.String(length=16), nullable=False),
        sa.Column('client_name', sa.String(length=128)),
        sa.Column('client_rut', sa.String(length=32)),
        sa.Column('uf_value', sa.Float()),
        sa.Column('precio_lista', sa.Float()),
        sa.Column('descuento_pct', sa.Float()),
        sa.Column('bono_pie_uf', sa.Float()),
        sa.Column('total_escritura', sa.Float()),
        sa.Column('credito_hipotecario', sa.Float()),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(length=64)),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_broker_quotations_broker_id', 'broker_quotations', ['broker_id'])
    op.create_index('ix_broker_quotations_project_name', 'broker_quotations', ['project_name'])
    op.create_index('ix_broker_quotations_created_at', 'broker_quotations', ['created_at'])

    op.create_table(
        'commission_calculations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('broker_id', sa.String(length=64), sa.ForeignKey('brokers.id'), nullable=True),
        sa.Column('broker_name', sa.String(length=128)),
        sa.Column('project_name', sa.String(length=128)),
        sa.Column('unidad_seleccionada', sa.String(length=64)),
        sa.Column('precio_lista_unidad', sa.Float(), nullable=False, server_default='0'),
        sa.Column('descuento_disponible', sa.Float(), nullable=False, server_default='0'),
        sa.Column('precio_minimo', sa.Float(), nullable=False, server_default='0'),
        sa.Column('recuperacion_total_minima', sa.Float(), nullable=False, server_default='0'),
        sa.Column('comision_uf', sa.Float(), nullable=False, server_default='0'),
        sa.Column('comision_pct', sa.Float(), nullable=False, server_default='0'),
        sa.Column('politica_comercial', sa.Text()),
        sa.Column('usuario_id', sa.String(length=64)),
        sa.Column('usuario_email', sa.String(length=120)),
        sa.Column('payload', sa.JSON()),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_commission_calculations_created_at', 'commission_calculations', ['created_at'])

    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reservation_number', sa.String(length=32), nullable=False),
        sa.Column('reservation_date', sa.DateTime(), nullable=False),
        sa.Column('project_name', sa.String(length=128)),
        sa.Column('broker_id', sa.String(length=64), sa.ForeignKey('brokers.id'), nullable=True),
        sa.Column('client_name', sa.String(length=128)),
        sa.Column('apartment_number', sa.String(length=32)),
        sa.Column('total_price', sa.Float()),
    )
    op.create_index('ix_reservations_reservation_date', 'reservations', ['reservation_date'])
    op.create_index('ix_reservations_project_name', 'reservations', ['project_name'])

    op.create_table(
        'broker_commissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('broker_id', sa.String(length=64), sa.ForeignKey('brokers.id'), nullable=True),
        sa.Column('reservation_id', sa.Integer(), sa.ForeignKey('reservations.id'), nullable=True),
        sa.Column('commission_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_broker_commissions_created_at', 'broker_commissions', ['created_at'])

    op.create_table(
        'email_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email_type', sa.String(length=64), nullable=False),
        sa.Column('recipient_email', sa.String(length=255), nullable=False),
        sa.Column('recipient_name', sa.String(length=255)),
        sa.Column('data', sa.JSON()),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='sent'),
        sa.Column('error', sa.Text()),
        sa.Column('sent_at', sa.DateTime()),
    )


def downgrade():
    op.drop_table('email_logs')
    op.drop_table('broker_commissions')
    op.drop_table('reservations')
    op.drop_table('commission_calculations')
    op.drop_table('broker_quotations')
    op.drop_table('valores_financieros')
    op.drop_table('project_commercial_policies')
    op.drop_table('broker_project_commissions')
    op.drop_table('brokers')
    op.drop_table('stock_unidades')
