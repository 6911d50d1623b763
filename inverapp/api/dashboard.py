# inverapp/api/dashboard.py

from flask import Blueprint
from inverapp.jwt_auth import require_jwt
from inverapp.utils import _handle_service_result
from inverapp.services.dashboard import get_dashboard_summary

bp = Blueprint('dashboard', __name__)


@bp.route('/dashboard/summary', methods=['GET'])
@require_jwt
def dashboard_summary_route():
    return _handle_service_result(get_dashboard_summary())
