# inverapp/api/broker_quote.py
# Public routes for brokers. No JWT: the slug and access token in the path
# identify the broker.

from flask import Blueprint, request, jsonify
from inverapp.utils import _handle_service_result
from inverapp.services.broker_quote import (
    get_broker_quote_context,
    preview_broker_quotation,
    save_broker_quotation,
)

bp = Blueprint('broker_quote', __name__)


@bp.route('/broker-quote/<string:slug>/<string:token>', methods=['GET'])
def broker_quote_route(slug, token):
    return _handle_service_result(get_broker_quote_context(slug, token), default_error_status=404)


@bp.route('/broker-quote/<string:slug>/<string:token>/preview', methods=['POST'])
def broker_quote_preview_route(slug, token):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    return _handle_service_result(preview_broker_quotation(slug, token, data))


@bp.route('/broker-quote/<string:slug>/<string:token>/quotations', methods=['POST'])
def broker_quote_save_route(slug, token):
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400
    return _handle_service_result(save_broker_quotation(slug, token, data))
