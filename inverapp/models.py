# models.py

from . import db
from datetime import datetime
from sqlalchemy.ext.hybrid import hybrid_property

# Table names follow the ones already used by the hosted database, so the
# same models read the production tables and build the local test schema.

# --- 1. STOCK UNIT MODEL ---

class StockUnit(db.Model):
    """
    One sellable unit of a project. 'DEPARTAMENTO' rows are main units;
    parking lots, storage rooms and similar are secondary units.
    """
    __tablename__ = 'stock_unidades'

    id = db.Column(db.Integer, primary_key=True)
    proyecto_nombre = db.Column(db.String(128), nullable=False, index=True)
    unidad = db.Column(db.String(64), nullable=False)
    tipologia = db.Column(db.String(64))
    tipo_bien = db.Column(db.String(64), nullable=False, default='DEPARTAMENTO', index=True)
    piso = db.Column(db.String(16))
    orientacion = db.Column(db.String(32))
    etapa = db.Column(db.String(64))

    sup_util = db.Column(db.Float)
    sup_terraza = db.Column(db.Float)
    sup_total = db.Column(db.Float)

    valor_lista = db.Column(db.Float)  # UF
    descuento = db.Column(db.Float)    # Fraction, e.g. 0.10 for 10%
    estado_unidad = db.Column(db.String(32), default='Disponible', index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'proyecto_nombre': self.proyecto_nombre,
            'unidad': self.unidad,
            'tipologia': self.tipologia,
            'tipo_bien': self.tipo_bien,
            'piso': self.piso,
            'orientacion': self.orientacion,
            'etapa': self.etapa,
            'sup_util': self.sup_util,
            'sup_terraza': self.sup_terraza,
            'sup_total': self.sup_total,
            'valor_lista': self.valor_lista,
            'descuento': self.descuento,
            'estado_unidad': self.estado_unidad,
        }


# --- 2. BROKER MODELS ---

class Broker(db.Model):
    __tablename__ = 'brokers'

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    business_name = db.Column(db.String(128))
    email = db.Column(db.String(120))
    slug = db.Column(db.String(128), unique=True, index=True)
    public_access_token = db.Column(db.String(128))

    commissions = db.relationship('BrokerProjectCommission', backref='broker', lazy=True,
                                  cascade="all, delete-orphan")

    def to_dict(self):
        # The access token is never serialized.
        return {
            'id': self.id,
            'name': self.name,
            'business_name': self.business_name,
            'email': self.email,
            'slug': self.slug,
        }


class BrokerProjectCommission(db.Model):
    """Commission agreed with a broker for one project, stored as a percentage (5 = 5%)."""
    __tablename__ = 'broker_project_commissions'

    id = db.Column(db.Integer, primary_key=True)
    broker_id = db.Column(db.String(64), db.ForeignKey('brokers.id'), nullable=False, index=True)
    project_name = db.Column(db.String(128), nullable=False, index=True)
    commission_rate = db.Column(db.Float)

    def to_dict(self):
        return {
            'id': self.id,
            'broker_id': self.broker_id,
            'project_name': self.project_name,
            'commission_rate': self.commission_rate,
        }


# --- 3. PROJECT COMMERCIAL POLICY ---

class ProjectCommercialPolicy(db.Model):
    __tablename__ = 'project_commercial_policies'

    id = db.Column(db.Integer, primary_key=True)
    project_name = db.Column(db.String(128), nullable=False, unique=True)
    monto_reserva_pesos = db.Column(db.Float)
    bono_pie_max_pct = db.Column(db.Float)  # Fraction, e.g. 0.15 for 15%
    fecha_tope = db.Column(db.Date)
    observaciones = db.Column(db.Text)
    comuna = db.Column(db.String(128))

    def to_dict(self):
        return {
            'id': self.id,
            'project_name': self.project_name,
            'monto_reserva_pesos': self.monto_reserva_pesos,
            'bono_pie_max_pct': self.bono_pie_max_pct,
            'fecha_tope': self.fecha_tope.isoformat() if self.fecha_tope else None,
            'observaciones': self.observaciones,
            'comuna': self.comuna,
        }


# --- 4. FINANCIAL VALUES (UF HISTORY) ---

class FinancialValue(db.Model):
    """Daily value of a currency index. One row per (nombre, fecha)."""
    __tablename__ = 'valores_financieros'

    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(32), nullable=False, index=True)
    valor = db.Column(db.Float, nullable=False)
    fecha = db.Column(db.Date, nullable=False, index=True)

    __table_args__ = (db.UniqueConstraint('nombre', 'fecha', name='uq_valores_financieros_nombre_fecha'),)

    def to_dict(self):
        return {
            'id': self.id,
            'nombre': self.nombre,
            'valor': self.valor,
            'fecha': self.fecha.isoformat(),
        }


# --- 5. QUOTATION ---

class Quotation(db.Model):
    """
    A finalized quotation. The summary columns feed reports and the dashboard;
    'payload' keeps the full state and breakdown exactly as quoted.
    """
    __tablename__ = 'broker_quotations'

    id = db.Column(db.Integer, primary_key=True)
    broker_id = db.Column(db.String(64), db.ForeignKey('brokers.id'), nullable=True, index=True)
    broker_name = db.Column(db.String(128))
    project_name = db.Column(db.String(128), index=True)
    unidad = db.Column(db.String(64))
    quotation_type = db.Column(db.String(16), nullable=False)
    client_name = db.Column(db.String(128))
    client_rut = db.Column(db.String(32))

    uf_value = db.Column(db.Float)
    precio_lista = db.Column(db.Float)
    descuento_pct = db.Column(db.Float)
    bono_pie_uf = db.Column(db.Float)
    total_escritura = db.Column(db.Float)
    credito_hipotecario = db.Column(db.Float)

    payload = db.Column(db.JSON, nullable=False)
    created_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    @hybrid_property
    def total_escritura_pesos(self):
        if self.total_escritura is not None and self.uf_value is not None:
            return self.total_escritura * self.uf_value
        return None

    def to_dict(self, include_payload=False):
        data = {
            'id': self.id,
            'broker_id': self.broker_id,
            'broker_name': self.broker_name,
            'project_name': self.project_name,
            'unidad': self.unidad,
            'quotation_type': self.quotation_type,
            'client_name': self.client_name,
            'client_rut': self.client_rut,
            'uf_value': self.uf_value,
            'precio_lista': self.precio_lista,
            'descuento_pct': self.descuento_pct,
            'bono_pie_uf': self.bono_pie_uf,
            'total_escritura': self.total_escritura,
            'total_escritura_pesos': self.total_escritura_pesos,
            'credito_hipotecario': self.credito_hipotecario,
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_payload:
            data['payload'] = self.payload
        return data


# --- 6. COMMISSION CALCULATION (LIQUIDACION) ---

class CommissionCalculation(db.Model):
    __tablename__ = 'commission_calculations'

    id = db.Column(db.Integer, primary_key=True)
    broker_id = db.Column(db.String(64), db.ForeignKey('brokers.id'), nullable=True)
    broker_name = db.Column(db.String(128))
    project_name = db.Column(db.String(128))
    unidad_seleccionada = db.Column(db.String(64))
    precio_lista_unidad = db.Column(db.Float, nullable=False, default=0.0)
    descuento_disponible = db.Column(db.Float, nullable=False, default=0.0)
    precio_minimo = db.Column(db.Float, nullable=False, default=0.0)
    recuperacion_total_minima = db.Column(db.Float, nullable=False, default=0.0)
    comision_uf = db.Column(db.Float, nullable=False, default=0.0)
    comision_pct = db.Column(db.Float, nullable=False, default=0.0)
    politica_comercial = db.Column(db.Text)
    usuario_id = db.Column(db.String(64))
    usuario_email = db.Column(db.String(120))
    # Full settlement plus the inputs and secondary units it was computed from.
    payload = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self, include_payload=False):
        data = {
            'id': self.id,
            'broker_id': self.broker_id,
            'broker_name': self.broker_name,
            'project_name': self.project_name,
            'unidad_seleccionada': self.unidad_seleccionada,
            'precio_lista_unidad': self.precio_lista_unidad,
            'descuento_disponible': self.descuento_disponible,
            'precio_minimo': self.precio_minimo,
            'recuperacion_total_minima': self.recuperacion_total_minima,
            'comision_uf': self.comision_uf,
            'comision_pct': self.comision_pct,
            'politica_comercial': self.politica_comercial,
            'usuario_id': self.usuario_id,
            'usuario_email': self.usuario_email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_payload:
            data['payload'] = self.payload
        return data


# --- 7. RESERVATIONS AND BROKER COMMISSIONS (READ BY THE DASHBOARD) ---

class Reservation(db.Model):
    __tablename__ = 'reservations'

    id = db.Column(db.Integer, primary_key=True)
    reservation_number = db.Column(db.String(32), nullable=False)
    reservation_date = db.Column(db.DateTime, nullable=False, index=True)
    project_name = db.Column(db.String(128), index=True)
    broker_id = db.Column(db.String(64), db.ForeignKey('brokers.id'), nullable=True)
    client_name = db.Column(db.String(128))
    apartment_number = db.Column(db.String(32))
    total_price = db.Column(db.Float)

    broker = db.relationship('Broker', lazy='joined')

    def to_dict(self):
        return {
            'id': self.id,
            'reservation_number': self.reservation_number,
            'reservation_date': self.reservation_date.isoformat() if self.reservation_date else None,
            'project_name': self.project_name,
            'broker_id': self.broker_id,
            'broker_name': self.broker.name if self.broker else None,
            'client_name': self.client_name,
            'apartment_number': self.apartment_number,
            'total_price': self.total_price,
        }


class BrokerCommission(db.Model):
    __tablename__ = 'broker_commissions'

    id = db.Column(db.Integer, primary_key=True)
    broker_id = db.Column(db.String(64), db.ForeignKey('brokers.id'), nullable=True)
    reservation_id = db.Column(db.Integer, db.ForeignKey('reservations.id'), nullable=True)
    commission_amount = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'broker_id': self.broker_id,
            'reservation_id': self.reservation_id,
            'commission_amount': self.commission_amount,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


# --- 8. EMAIL AUDIT LOG ---

class EmailLog(db.Model):
    __tablename__ = 'email_logs'

    id = db.Column(db.Integer, primary_key=True)
    email_type = db.Column(db.String(64), nullable=False)
    recipient_email = db.Column(db.String(255), nullable=False)
    recipient_name = db.Column(db.String(255))
    data = db.Column(db.JSON)
    status = db.Column(db.String(16), nullable=False, default='sent')
    error = db.Column(db.Text)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'email_type': self.email_type,
            'recipient_email': self.recipient_email,
            'recipient_name': self.recipient_name,
            'data': self.data,
            'status': self.status,
            'error': self.error,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
        }
