"""
Supabase access-token verification for the back-office API.

Staff sign in on the Supabase side; every back-office request forwards the
resulting access token as a Bearer header. Brokers never hold one of these
tokens: the public quote pages authenticate with the slug + access token in
the URL instead (see services/stock.get_broker_by_access).
"""

import jwt
from functools import wraps
from dataclasses import dataclass
from flask import request, jsonify, g, current_app


SALES, FINANCE, ADMIN = 'SALES', 'FINANCE', 'ADMIN'
VALID_ROLES = (SALES, FINANCE, ADMIN)

SUPABASE_AUDIENCE = 'authenticated'


class JWTAuthError(Exception):
    def __init__(self, message, status_code=401):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


@dataclass
class UserContext:
    """Back-office user, built only from token claims."""
    id: str
    email: str
    username: str
    role: str

    @property
    def sees_all_quotations(self):
        return self.role in (FINANCE, ADMIN)

    @property
    def can_settle_commissions(self):
        return self.role in (FINANCE, ADMIN)

    @property
    def can_send_notifications(self):
        return self.role == ADMIN


def _bearer_token():
    header = request.headers.get('Authorization')
    if not header:
        raise JWTAuthError("Missing Authorization header")

    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token or ' ' in token.strip():
        raise JWTAuthError("Invalid Authorization header format. Expected 'Bearer <token>'")
    return token.strip()


def decode_access_token(token):
    """
    Decodes a Supabase access token (HS256, audience 'authenticated').

    Raises:
        JWTAuthError: 401 for a bad or expired token, 500 when the secret is
        not configured
    """
    secret = current_app.config.get('SUPABASE_JWT_SECRET')
    if not secret:
        raise JWTAuthError("SUPABASE_JWT_SECRET not configured", 500)

    try:
        return jwt.decode(token, secret, algorithms=['HS256'], audience=SUPABASE_AUDIENCE)
    except jwt.ExpiredSignatureError:
        raise JWTAuthError("Token has expired")
    except jwt.InvalidAudienceError:
        raise JWTAuthError("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise JWTAuthError(f"Invalid token: {str(e)}")


def user_from_claims(claims):
    """
    Maps token claims onto a UserContext. Role and username live in
    user_metadata; a missing or unknown role degrades to SALES, the least
    privileged one.
    """
    user_id = claims.get('sub')
    email = claims.get('email')
    if not user_id:
        raise JWTAuthError("Token missing 'sub' claim")
    if not email:
        raise JWTAuthError("Token missing 'email' claim")

    metadata = claims.get('user_metadata') or {}
    role = (metadata.get('role') or SALES).upper()
    if role not in VALID_ROLES:
        current_app.logger.warning(f"Token for {user_id} carries unknown role '{role}'. Using SALES.")
        role = SALES

    return UserContext(
        id=user_id,
        email=email,
        username=metadata.get('username') or email.split('@')[0],
        role=role,
    )


def require_jwt(f):
    """
    Rejects the request with 401 (or 500 on misconfiguration) unless it
    carries a valid token; otherwise exposes the user as g.current_user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            g.current_user = user_from_claims(decode_access_token(_bearer_token()))
        except JWTAuthError as e:
            return jsonify({"message": e.message}), e.status_code
        return f(*args, **kwargs)

    return decorated_function


def _role_required(allowed_roles, denied_message):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, 'current_user', None)
            if not user:
                return jsonify({"message": "Authentication required."}), 401
            if user.role not in allowed_roles:
                return jsonify({"message": denied_message}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


# Stack below @require_jwt.
admin_required = _role_required((ADMIN,), "Permission denied: Admin access required.")
finance_admin_required = _role_required((FINANCE, ADMIN),
                                        "Permission denied: Finance or Admin access required.")


def get_current_user():
    return getattr(g, 'current_user', None)
