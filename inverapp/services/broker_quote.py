# inverapp/services/broker_quote.py
# Services behind the public broker quote link (/broker-quote/<slug>/<token>).
# The link itself is the credential; there is no user session here.

from flask import current_app

from .stock import get_broker_by_access, get_broker_commissions, get_units, get_projects
from .uf_rates import fetch_latest_uf_value, get_last_known_uf_value
from .quotations import preview_quotation, save_quotation

_NOT_FOUND = {"success": False, "error": "Enlace de cotización no válido."}


def get_broker_quote_context(slug, token):
    """Everything the public quote page needs on load."""
    try:
        broker = get_broker_by_access(slug, token)
        if broker is None:
            return dict(_NOT_FOUND), 404

        commissions = get_broker_commissions(broker.id)
        uf_value = fetch_latest_uf_value() or get_last_known_uf_value()

        return {
            "success": True,
            "data": {
                "broker": broker.to_dict(),
                "uf_value": uf_value,
                "projects": get_projects(),
                "units": [unit.to_dict() for unit in get_units(kind='main')],
                "commissions": {c.project_name: c.commission_rate for c in commissions},
            }
        }
    except Exception as e:
        current_app.logger.error("Error loading broker quote for '%s': %s", slug, str(e), exc_info=True)
        return {"success": False, "error": f"An unexpected error occurred: {str(e)}"}, 500


def preview_broker_quotation(slug, token, data):
    broker = get_broker_by_access(slug, token)
    if broker is None:
        return dict(_NOT_FOUND), 404
    return preview_quotation(data or {}, broker_id=broker.id, locked_commission=True)


def save_broker_quotation(slug, token, data):
    broker = get_broker_by_access(slug, token)
    if broker is None:
        return dict(_NOT_FOUND), 404
    return save_quotation(data or {}, broker=broker, locked_commission=True)
