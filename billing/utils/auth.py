from functools import wraps
import hmac
from flask import current_app, request, g
from .responses import error
from .jwt import decode_token, TokenError


def bearer_token():
    auth = request.headers.get("Authorization", "")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def check_admin_credentials(username: str, password: str) -> bool:
    """Compare against the single configured admin identity."""
    cfg = current_app.config
    expected_user = (cfg.get("ADMIN_USERNAME") or "").encode()
    expected_pass = (cfg.get("ADMIN_PASSWORD") or "").encode()
    user_ok = hmac.compare_digest((username or "").encode(), expected_user)
    pass_ok = hmac.compare_digest((password or "").encode(), expected_pass)
    return bool(expected_user) and user_ok and pass_ok


def auth_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if request.method == "OPTIONS":
            return func(*args, **kwargs)
        if not request.headers.get("Authorization"):
            return error("Auth header missing", status=401)
        token = bearer_token()
        if token is None:
            return error("Invalid authorization header", status=401)
        try:
            payload = decode_token(token, expected_type="access")
        except TokenError as e:
            return error(str(e), status=401)

        g.username = payload["sub"]
        return func(*args, **kwargs)

    return wrapper
