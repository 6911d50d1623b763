# inverapp/services/quotations.py
# (Quotation preview, persistence and listing services.)

from dataclasses import replace

from flask import current_app
from inverapp import db
from inverapp.models import Quotation
from inverapp.utils.general import convert_to_json_safe

from .quotation_state import reduce, compute_breakdown, state_to_dict, state_from_dict
from .stock import (
    get_unit,
    get_broker,
    get_broker_commission_rate,
    get_commercial_policy,
    get_reservation_pesos,
)
from .uf_rates import fetch_latest_uf_value, get_last_known_uf_value

# Actions whose value may be given as a stock unit id instead of a full unit.
_UNIT_ACTIONS = ('select_unit', 'add_secondary')

# Terms a public broker quote takes from the database, never from the browser.
_LOCKED_ACTIONS = ('set_commission_rate', 'set_reservation_pesos',
                   'set_max_incentive_pct', 'set_uf_value')


# --- HELPER FUNCTIONS ---

def _resolve_unit_value(action, value):
    """Loads the unit from stock when the browser only sent its id."""
    if action not in _UNIT_ACTIONS or isinstance(value, dict) or value is None:
        return value
    unit = get_unit(value)
    if unit is None:
        raise LookupError(f"Unit {value} not found.")
    return unit.to_dict()


def _apply_project_terms(state, broker_id, commission_fallback=None):
    """
    Fills in what belongs to the selected unit's project rather than to the
    user: the reservation amount, the bono pie cap and, when a broker is
    quoting, their commission for the project.
    """
    if state.unit is None:
        return state

    policy = get_commercial_policy(state.unit.project_name)
    state = reduce(state, 'set_reservation_pesos', get_reservation_pesos(policy))
    state = reduce(state, 'set_max_incentive_pct', policy.max_incentive_pct if policy else 0.0)
    if broker_id:
        state = reduce(state, 'set_commission_rate',
                       get_broker_commission_rate(broker_id, state.unit.project_name))
    elif commission_fallback is not None:
        state = reduce(state, 'set_commission_rate', commission_fallback)
    return state


def _lock_to_stock(state, broker_id):
    """
    Replaces everything a public quote must not choose with stored values:
    units, the broker's commission, the project's reservation amount and
    bono pie cap, and today's UF value.
    """
    unit = get_unit(state.unit.id) if state.unit else None
    secondary = tuple(
        item for item in (get_unit(s.id) for s in state.secondary_units) if item is not None
    )
    state = replace(state, unit=unit, secondary_units=secondary,
                    uf_value=fetch_latest_uf_value() or get_last_known_uf_value() or 0.0)
    if unit is None:
        return replace(state, commission_rate=0.0, reservation_pesos=0.0, max_incentive_pct=0.0)
    return _apply_project_terms(state, broker_id, commission_fallback=0.0)


def apply_action(data, broker_id=None, locked_commission=False):
    """
    Rebuilds the state sent by the browser, applies one optional action and
    returns (state, breakdown).

    With locked_commission, units, commission, project terms and the UF value
    come from the database, whatever the payload says.

    Raises:
        ValueError: unknown or forbidden action
        LookupError: unit id not found
    """
    state = state_from_dict(data.get('state'))
    action = data.get('action')
    value = data.get('value')

    if locked_commission:
        if action in _LOCKED_ACTIONS:
            raise ValueError("Las condiciones comerciales del proyecto no pueden modificarse.")
        state = _lock_to_stock(state, broker_id)
        # Only the id of a submitted unit is trusted.
        if action in _UNIT_ACTIONS and isinstance(value, dict):
            value = value.get('id')

    if action:
        value = _resolve_unit_value(action, value)
        state = reduce(state, action, value)
        if action == 'select_unit':
            state = _apply_project_terms(state, broker_id)

    return state, compute_breakdown(state)


# --- MAIN SERVICE FUNCTIONS ---

def preview_quotation(data, broker_id=None, locked_commission=False):
    """
    Stateless calculator behind the quotation form: one edit in, the new state
    and its full price breakdown out. Nothing is stored.
    """
    try:
        broker_id = broker_id or data.get('broker_id')
        state, breakdown = apply_action(data, broker_id=broker_id, locked_commission=locked_commission)
        return {
            "success": True,
            "data": convert_to_json_safe({
                "state": state_to_dict(state),
                "breakdown": breakdown.to_dict(),
            })
        }
    except ValueError as e:
        return {"success": False, "error": str(e)}, 400
    except LookupError as e:
        return {"success": False, "error": str(e)}, 404
    except Exception as e:
        current_app.logger.error("Error during quotation preview: %s", str(e), exc_info=True)
        return {"success": False, "error": f"An unexpected error occurred during preview: {str(e)}"}, 500


def save_quotation(data, user=None, broker=None, locked_commission=False):
    """
    Stores a finalized quotation. The breakdown is recomputed here from the
    submitted state; computed fields coming from the browser are ignored.
    """
    try:
        broker_id = broker.id if broker else data.get('broker_id')
        state = state_from_dict(data.get('state'))
        if locked_commission:
            state = _lock_to_stock(state, broker_id)

        if state.unit is None:
            return {"success": False, "error": "Debe seleccionar una unidad para cotizar."}, 400
        if state.uf_value <= 0:
            return {"success": False, "error": "El valor de la UF debe ser mayor a 0."}, 400

        if broker is None and broker_id:
            broker = get_broker(broker_id)

        breakdown = compute_breakdown(state)
        summary = breakdown.to_dict()

        quotation = Quotation(
            broker_id=broker.id if broker else None,
            broker_name=broker.name if broker else None,
            project_name=state.unit.project_name,
            unidad=state.unit.code,
            quotation_type=breakdown.resolution.mode,
            client_name=state.client_name or None,
            client_rut=state.client_rut or None,
            uf_value=state.uf_value,
            precio_lista=summary['list_price'],
            descuento_pct=summary['discount_pct'],
            bono_pie_uf=summary['incentive_uf'],
            total_escritura=summary['total_deed_price'],
            credito_hipotecario=round(breakdown.schedule.mortgage_credit_uf, 2),
            payload=convert_to_json_safe({"state": state_to_dict(state), "breakdown": summary}),
            created_by=user.email if user else (broker.slug if broker else None),
        )
        db.session.add(quotation)
        db.session.commit()

        current_app.logger.info(f"Quotation {quotation.id} saved for unit {quotation.unidad} "
                                f"({quotation.project_name}) by {quotation.created_by}")

        return {"success": True, "message": "Cotización guardada.", "quotation_id": quotation.id}

    except ValueError as e:
        db.session.rollback()
        return {"success": False, "error": str(e)}, 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Error saving quotation: %s", str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500


def _visible_quotations(user):
    """SALES users only see the quotations they created."""
    query = Quotation.query
    if user is not None and not user.sees_all_quotations:
        query = query.filter(Quotation.created_by == user.email)
    return query


def get_quotations(page=1, per_page=30, user=None):
    try:
        quotations = _visible_quotations(user).order_by(Quotation.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )
        return {
            "success": True,
            "data": {
                "quotations": [q.to_dict() for q in quotations.items],
                "total": quotations.total,
                "pages": quotations.pages,
                "current_page": quotations.page,
            }
        }
    except Exception as e:
        current_app.logger.error("Error listing quotations: %s", str(e), exc_info=True)
        return {"success": False, "error": f"An unexpected error occurred: {str(e)}"}, 500


def get_quotation_details(quotation_id, user=None):
    try:
        quotation = _visible_quotations(user).filter(Quotation.id == quotation_id).first()
        if quotation is None:
            return {"success": False, "error": "Cotización no encontrada o acceso denegado."}, 404
        return {"success": True, "data": quotation.to_dict(include_payload=True)}
    except Exception as e:
        current_app.logger.error("Error loading quotation %s: %s", quotation_id, str(e), exc_info=True)
        return {"success": False, "error": f"An unexpected error occurred: {str(e)}"}, 500
