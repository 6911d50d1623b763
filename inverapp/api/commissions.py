# inverapp/api/commissions.py
# (Broker commission settlement routes.)

from flask import Blueprint, request, jsonify
from inverapp.jwt_auth import require_jwt, get_current_user
from inverapp.utils import _handle_service_result, finance_admin_required

from inverapp.services.commission_calculations import (
    preview_commission_calculation,
    save_commission_calculation,
)

bp = Blueprint('commissions', __name__)


@bp.route('/commission-calculations/preview', methods=['POST'])
@require_jwt
def preview_commission_route():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    return _handle_service_result(preview_commission_calculation(data))


@bp.route('/commission-calculations', methods=['POST'])
@require_jwt
@finance_admin_required
def save_commission_route():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    result = save_commission_calculation(data, user=get_current_user())
    return _handle_service_result(result)
