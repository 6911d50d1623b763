# inverapp/services/records.py
# Typed records for rows coming out of the database or the browser.
# Business logic only ever sees these; raw rows stop at the parse_* functions.

from dataclasses import dataclass, asdict
from datetime import date

from inverapp.utils.math_utils import to_number, clamp

MAIN_UNIT_TYPE = 'DEPARTAMENTO'


def _field(row, name, default=None):
    """Reads a field from either an ORM object or a plain dict."""
    if row is None:
        return default
    if isinstance(row, dict):
        return row.get(name, default)
    return getattr(row, name, default)


def _text(row, name):
    value = _field(row, name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# --- 1. UnitRecord ---

@dataclass(frozen=True)
class UnitRecord:
    id: object
    project_name: str
    code: str
    typology: str
    floor: str
    useful_area: float
    terrace_area: float
    total_area: float
    list_price: float        # UF
    base_discount_rate: float  # 0-1
    status: str
    kind: str                # 'main' or 'secondary'
    unit_type: str

    def to_dict(self):
        return asdict(self)


def parse_unit(row):
    """
    Maps a stock_unidades row (ORM object or dict) into a UnitRecord.
    Missing or invalid numbers become 0; the discount is clamped to [0, 1].
    Accepts both the table's column names and a UnitRecord.to_dict() payload.
    """
    if row is None:
        return None

    unit_type = (_text(row, 'tipo_bien') or _text(row, 'unit_type') or MAIN_UNIT_TYPE).upper()
    kind = _text(row, 'kind') or ('main' if unit_type == MAIN_UNIT_TYPE else 'secondary')

    list_price = _field(row, 'valor_lista')
    if list_price is None:
        list_price = _field(row, 'list_price')
    discount = _field(row, 'descuento')
    if discount is None:
        discount = _field(row, 'base_discount_rate')

    return UnitRecord(
        id=_field(row, 'id'),
        project_name=_text(row, 'proyecto_nombre') or _text(row, 'project_name') or '',
        code=_text(row, 'unidad') or _text(row, 'code') or '',
        typology=_text(row, 'tipologia') or _text(row, 'typology') or '',
        floor=_text(row, 'piso') or _text(row, 'floor') or '',
        useful_area=to_number(_field(row, 'sup_util', _field(row, 'useful_area'))),
        terrace_area=to_number(_field(row, 'sup_terraza', _field(row, 'terrace_area'))),
        total_area=to_number(_field(row, 'sup_total', _field(row, 'total_area'))),
        list_price=max(0.0, to_number(list_price)),
        base_discount_rate=clamp(discount, 0.0, 1.0),
        status=_text(row, 'estado_unidad') or _text(row, 'status') or '',
        kind=kind,
        unit_type=unit_type,
    )


# --- 2. BrokerRecord ---

@dataclass(frozen=True)
class BrokerRecord:
    id: str
    name: str
    business_name: str
    email: str
    slug: str

    def to_dict(self):
        return asdict(self)


def parse_broker(row):
    if row is None:
        return None
    return BrokerRecord(
        id=str(_field(row, 'id')),
        name=_text(row, 'name') or '',
        business_name=_text(row, 'business_name') or '',
        email=_text(row, 'email') or '',
        slug=_text(row, 'slug') or '',
    )


# --- 3. CommissionRecord ---

@dataclass(frozen=True)
class CommissionRecord:
    broker_id: str
    project_name: str
    commission_pct: float   # As stored: 5 means 5%
    commission_rate: float  # Fraction used by the pricing engine: 0.05

    def to_dict(self):
        return asdict(self)


def parse_commission(row):
    """The table stores a percentage; the engine works with a 0-1 fraction."""
    if row is None:
        return None
    pct = clamp(_field(row, 'commission_rate'), 0.0, 100.0)
    return CommissionRecord(
        broker_id=str(_field(row, 'broker_id')),
        project_name=_text(row, 'project_name') or '',
        commission_pct=pct,
        commission_rate=pct / 100,
    )


# --- 4. CommercialPolicyRecord ---

@dataclass(frozen=True)
class CommercialPolicyRecord:
    project_name: str
    reservation_pesos: float
    max_incentive_pct: float  # Percent of deed total, 0 means no cap
    deadline: str
    notes: str
    comuna: str

    def to_dict(self):
        return asdict(self)


def parse_policy(row):
    if row is None:
        return None
    deadline = _field(row, 'fecha_tope')
    if isinstance(deadline, date):
        deadline = deadline.isoformat()
    return CommercialPolicyRecord(
        project_name=_text(row, 'project_name') or '',
        reservation_pesos=max(0.0, to_number(_field(row, 'monto_reserva_pesos'))),
        max_incentive_pct=clamp(_field(row, 'bono_pie_max_pct'), 0.0, 1.0) * 100,
        deadline=deadline,
        notes=_text(row, 'observaciones'),
        comuna=_text(row, 'comuna'),
    )
