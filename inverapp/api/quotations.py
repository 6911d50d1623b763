# inverapp/api/quotations.py
# (Quotation routes for authenticated back-office users.)

from flask import Blueprint, request, jsonify
from inverapp.jwt_auth import require_jwt, get_current_user
from inverapp.utils import _handle_service_result

from inverapp.services.quotations import (
    preview_quotation,
    save_quotation,
    get_quotations,
    get_quotation_details,
)

bp = Blueprint('quotations', __name__)


@bp.route('/quotations/preview', methods=['POST'])
@require_jwt
def preview_quotation_route():
    """
    Receives the current form state and, optionally, one action to apply.
    Returns the new state and its price breakdown.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    return _handle_service_result(preview_quotation(data))


@bp.route('/quotations', methods=['POST'])
@require_jwt
def save_quotation_route():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    result = save_quotation(data, user=get_current_user())
    return _handle_service_result(result)


@bp.route('/quotations', methods=['GET'])
@require_jwt
def list_quotations_route():
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 30, type=int)
    result = get_quotations(page=page, per_page=per_page, user=get_current_user())
    return _handle_service_result(result)


@bp.route('/quotations/<int:quotation_id>', methods=['GET'])
@require_jwt
def get_quotation_route(quotation_id):
    result = get_quotation_details(quotation_id, user=get_current_user())
    return _handle_service_result(result, default_error_status=404)
