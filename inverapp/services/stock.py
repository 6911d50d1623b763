# inverapp/services/stock.py
# Read access to stock, brokers, commissions and commercial policies.
# Every function returns typed records from records.py, never ORM rows.

import hmac

from flask import current_app
from inverapp import db
from inverapp.models import StockUnit, Broker, BrokerProjectCommission, ProjectCommercialPolicy
from .records import (
    MAIN_UNIT_TYPE,
    parse_unit,
    parse_broker,
    parse_commission,
    parse_policy,
)

AVAILABLE_STATUS = 'Disponible'


def get_units(project_name=None, kind=None, status=AVAILABLE_STATUS):
    """
    Lists stock units, optionally filtered by project, kind ('main' or
    'secondary') and status. status=None returns every status.
    """
    query = StockUnit.query

    if project_name:
        query = query.filter(StockUnit.proyecto_nombre == project_name)
    if status:
        query = query.filter(StockUnit.estado_unidad == status)
    if kind == 'main':
        query = query.filter(StockUnit.tipo_bien == MAIN_UNIT_TYPE)
    elif kind == 'secondary':
        query = query.filter(StockUnit.tipo_bien != MAIN_UNIT_TYPE)

    rows = query.order_by(StockUnit.proyecto_nombre, StockUnit.unidad).all()
    return [parse_unit(row) for row in rows]


def get_unit(unit_id):
    try:
        unit_id = int(unit_id)
    except (TypeError, ValueError):
        return None
    return parse_unit(db.session.get(StockUnit, unit_id))


def get_secondary_units(project_name, status=AVAILABLE_STATUS):
    return get_units(project_name=project_name, kind='secondary', status=status)


def get_projects(status=AVAILABLE_STATUS):
    """Distinct project names that still have stock in the given status."""
    query = db.session.query(StockUnit.proyecto_nombre).distinct()
    if status:
        query = query.filter(StockUnit.estado_unidad == status)
    return sorted(name for (name,) in query.all() if name)


def get_broker(broker_id):
    return parse_broker(db.session.get(Broker, broker_id))


def get_broker_by_access(slug, token):
    """
    Resolves the broker behind a public quote link. Both the slug and the
    access token must match; a broker without a token never matches.
    """
    if not slug or not token:
        return None

    broker = Broker.query.filter_by(slug=slug).first()
    if broker is None or not broker.public_access_token:
        return None

    if not hmac.compare_digest(broker.public_access_token.encode(), str(token).encode()):
        current_app.logger.warning(f"Rejected broker quote access for slug '{slug}': token mismatch")
        return None

    return parse_broker(broker)


def get_broker_commissions(broker_id):
    rows = BrokerProjectCommission.query.filter_by(broker_id=broker_id).all()
    return [parse_commission(row) for row in rows]


def get_broker_commission(broker_id, project_name):
    """Returns the CommissionRecord for a broker and project, or None when there is no agreement."""
    if not broker_id or not project_name:
        return None
    row = BrokerProjectCommission.query.filter_by(
        broker_id=broker_id, project_name=project_name
    ).first()
    return parse_commission(row)


def get_broker_commission_rate(broker_id, project_name):
    """Commission as a 0-1 fraction. Defaults to 0 when there is no agreement."""
    record = get_broker_commission(broker_id, project_name)
    return record.commission_rate if record else 0.0


def get_commercial_policy(project_name):
    if not project_name:
        return None
    row = ProjectCommercialPolicy.query.filter_by(project_name=project_name).first()
    return parse_policy(row)


def get_reservation_pesos(policy):
    """Reservation amount for a project: the policy's own amount, or the configured default."""
    if policy and policy.reservation_pesos > 0:
        return policy.reservation_pesos
    return float(current_app.config['DEFAULT_RESERVATION_PESOS'])


# --- SERVICE FUNCTIONS (used by the blueprints) ---

def list_units(project_name=None, kind=None, status=AVAILABLE_STATUS):
    try:
        units = get_units(project_name=project_name, kind=kind, status=status)
        return {"success": True, "data": [unit.to_dict() for unit in units]}
    except Exception as e:
        current_app.logger.error("Error listing stock units: %s", str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500


def get_unit_details(unit_id):
    """A unit with the secondary units of its project and the project's commercial policy."""
    try:
        unit = get_unit(unit_id)
        if unit is None:
            return {"success": False, "error": "Unidad no encontrada."}, 404

        policy = get_commercial_policy(unit.project_name)
        return {
            "success": True,
            "data": {
                "unit": unit.to_dict(),
                "secondary_units": [s.to_dict() for s in get_secondary_units(unit.project_name)],
                "policy": policy.to_dict() if policy else None,
                "reservation_pesos": get_reservation_pesos(policy),
            }
        }
    except Exception as e:
        current_app.logger.error("Error loading unit %s: %s", unit_id, str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500


def list_projects():
    try:
        return {"success": True, "data": get_projects()}
    except Exception as e:
        current_app.logger.error("Error listing projects: %s", str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500


def get_commission_summary(broker_id, project_name=None):
    """
    Commission agreements of a broker. With a project, only that project's
    rate (0 when there is no agreement).
    """
    try:
        broker = get_broker(broker_id)
        if broker is None:
            return {"success": False, "error": "Broker no encontrado."}, 404

        if project_name:
            record = get_broker_commission(broker_id, project_name)
            return {
                "success": True,
                "data": {
                    "broker": broker.to_dict(),
                    "project_name": project_name,
                    "commission_pct": record.commission_pct if record else 0.0,
                    "commission_rate": record.commission_rate if record else 0.0,
                    "has_agreement": record is not None,
                }
            }

        return {
            "success": True,
            "data": {
                "broker": broker.to_dict(),
                "commissions": [c.to_dict() for c in get_broker_commissions(broker_id)],
            }
        }
    except Exception as e:
        current_app.logger.error("Error loading commissions for broker %s: %s", broker_id, str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500
