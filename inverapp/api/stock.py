# inverapp/api/stock.py
# (Stock, broker commission and UF value routes.)

from flask import Blueprint, request
from inverapp.jwt_auth import require_jwt
from inverapp.utils import _handle_service_result

from inverapp.services.stock import (
    AVAILABLE_STATUS,
    list_units,
    get_unit_details,
    list_projects,
    get_commission_summary,
)
from inverapp.services.uf_rates import get_uf_value_summary

bp = Blueprint('stock', __name__)


@bp.route('/stock/units', methods=['GET'])
@require_jwt
def list_units_route():
    # ?status=all lists every unit regardless of status
    status = request.args.get('status', AVAILABLE_STATUS)
    result = list_units(
        project_name=request.args.get('project'),
        kind=request.args.get('kind'),
        status=None if status == 'all' else status,
    )
    return _handle_service_result(result)


@bp.route('/stock/units/<int:unit_id>', methods=['GET'])
@require_jwt
def get_unit_route(unit_id):
    result = get_unit_details(unit_id)
    return _handle_service_result(result, default_error_status=404)


@bp.route('/stock/projects', methods=['GET'])
@require_jwt
def list_projects_route():
    return _handle_service_result(list_projects())


@bp.route('/brokers/<string:broker_id>/commission', methods=['GET'])
@require_jwt
def broker_commission_route(broker_id):
    result = get_commission_summary(broker_id, request.args.get('project'))
    return _handle_service_result(result, default_error_status=404)


@bp.route('/uf/latest', methods=['GET'])
@require_jwt
def latest_uf_route():
    return _handle_service_result(get_uf_value_summary())
