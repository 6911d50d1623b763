# inverapp/services/commission_calculations.py
# (Preview and persistence of broker commission settlements.)

from flask import current_app
from inverapp import db
from inverapp.models import CommissionCalculation
from inverapp.utils.general import convert_to_json_safe
from inverapp.utils.math_utils import to_number

from .broker_commission import calculate_settlement
from .stock import get_unit, get_broker, get_broker_commission, get_commercial_policy


def _build_settlement(data):
    """
    Resolves the unit, broker agreement and secondary units named in the
    request and runs the settlement calculator.

    Returns (settlement, context) or an (error_dict, status) tuple.
    """
    unit = get_unit(data.get('unit_id'))
    if unit is None:
        return {"success": False, "error": "Unidad no encontrada."}, 404

    broker = None
    broker_id = data.get('broker_id')
    if broker_id:
        broker = get_broker(broker_id)
        if broker is None:
            return {"success": False, "error": "Broker no encontrado."}, 404

    commission = get_broker_commission(broker_id, unit.project_name) if broker else None

    secondary_units = []
    for secondary_id in data.get('secondary_unit_ids') or []:
        secondary = get_unit(secondary_id)
        if secondary is None:
            return {"success": False, "error": f"Unidad secundaria {secondary_id} no encontrada."}, 404
        secondary_units.append(secondary)

    settlement = calculate_settlement(
        unit.list_price,
        unit.base_discount_rate,
        commission_pct=commission.commission_pct if commission else None,
        secondary_prices=[s.list_price for s in secondary_units],
        fixed_discount_pct=to_number(data.get('fixed_discount_pct')),
        bono_pie_pct=to_number(data.get('bono_pie_pct')),
        include_secondaries=bool(data.get('include_secondaries')),
    )

    context = {
        "unit": unit,
        "broker": broker,
        "secondary_units": secondary_units,
        "policy": get_commercial_policy(unit.project_name),
    }
    return settlement, context


def preview_commission_calculation(data):
    try:
        result = _build_settlement(data or {})
        if isinstance(result[0], dict):
            return result
        settlement, context = result

        return {
            "success": True,
            "data": {
                "settlement": settlement.to_dict(),
                "unit": context["unit"].to_dict(),
                "broker": context["broker"].to_dict() if context["broker"] else None,
                "secondary_units": [s.to_dict() for s in context["secondary_units"]],
                "policy": context["policy"].to_dict() if context["policy"] else None,
            }
        }
    except Exception as e:
        current_app.logger.error("Error during commission preview: %s", str(e), exc_info=True)
        return {"success": False, "error": f"An unexpected error occurred during preview: {str(e)}"}, 500


def save_commission_calculation(data, user=None):
    """Recomputes the settlement server-side and stores it."""
    data = data or {}
    try:
        result = _build_settlement(data)
        if isinstance(result[0], dict):
            return result
        settlement, context = result

        unit = context["unit"]
        broker = context["broker"]
        policy = context["policy"]

        calculation = CommissionCalculation(
            broker_id=broker.id if broker else None,
            broker_name=broker.name if broker else None,
            project_name=unit.project_name,
            unidad_seleccionada=unit.code,
            precio_lista_unidad=settlement.precio_lista,
            descuento_disponible=settlement.descuento_disponible,
            precio_minimo=settlement.precio_minimo,
            recuperacion_total_minima=settlement.recuperacion_total_minima,
            comision_uf=settlement.comision_uf,
            comision_pct=settlement.comision_pct,
            politica_comercial=data.get('politica_comercial') or (policy.notes if policy else None),
            usuario_id=user.id if user else None,
            usuario_email=user.email if user else None,
            payload=convert_to_json_safe({
                "settlement": settlement.to_dict(),
                "inputs": {
                    "fixed_discount_pct": to_number(data.get('fixed_discount_pct')),
                    "bono_pie_pct": to_number(data.get('bono_pie_pct')),
                    "include_secondaries": bool(data.get('include_secondaries')),
                },
                "secondary_units": [s.to_dict() for s in context["secondary_units"]],
            }),
        )
        db.session.add(calculation)
        db.session.commit()

        current_app.logger.info(f"Commission calculation {calculation.id} saved for unit {unit.code} "
                                f"({unit.project_name})")
        return {"success": True, "message": "Liquidación guardada.", "calculation_id": calculation.id}

    except Exception as e:
        db.session.rollback()
        current_app.logger.error("Error saving commission calculation: %s", str(e), exc_info=True)
        return {"success": False, "error": f"Database error: {str(e)}"}, 500
