# auth.py

from flask import Blueprint, jsonify, g
from inverapp.jwt_auth import require_jwt

bp = Blueprint('auth', __name__)


@bp.route('/me', methods=['GET'])
@require_jwt
def current_user_profile():
    """
    Profile and permissions of the signed-in back-office user. The browser
    calls this after the Supabase login to decide which screens to show.
    """
    user = g.current_user

    return jsonify({
        "is_authenticated": True,
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "permissions": {
            "view_all_quotations": user.sees_all_quotations,
            "save_commission_calculations": user.can_settle_commissions,
            "send_notifications": user.can_send_notifications,
        },
    }), 200
