# inverapp/api/notifications.py

from flask import Blueprint, request, jsonify
from inverapp.jwt_auth import require_jwt
from inverapp.utils import _handle_service_result, admin_required
from inverapp.services.email_service import send_notification_email

bp = Blueprint('notifications', __name__)


@bp.route('/notifications/email', methods=['POST'])
@require_jwt
@admin_required
def send_email_route():
    """
    Body: {"email_type", "data", "recipient_email", "recipient_name"}
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or not payload:
        return jsonify({"success": False, "error": "No data provided in the request"}), 400

    result = send_notification_email(
        payload.get('email_type'),
        payload.get('data'),
        payload.get('recipient_email'),
        payload.get('recipient_name'),
    )
    return _handle_service_result(result)
