from flask import Blueprint, request, current_app
from flask_limiter.util import get_remote_address
import logging
from billing.version import API_PREFIX
from billing.schemas.auth import LoginRequest, RefreshRequest
from billing.utils import (
    ok,
    error,
    validate_schema,
    check_admin_credentials,
    create_access_token,
    create_refresh_token,
    decode_token,
    TokenError,
)
from extensions import limiter

auth_bp = Blueprint("auth", __name__, url_prefix=f"{API_PREFIX}/auth")
logger = logging.getLogger(__name__)


def _token_pair(username):
    return {
        "access_token": create_access_token(username),
        "refresh_token": create_refresh_token(username),
        "token_type": "bearer",
        "expires_in": current_app.config["ACCESS_TOKEN_LIFETIME_MIN"] * 60,
    }


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["LOGIN_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many login attempts, rate limit exceeded",
)
@validate_schema(LoginRequest)
def login():
    data: LoginRequest = request.validated_data
    if not check_admin_credentials(data.username, data.password):
        logger.warning({"event": "login_failed", "username": data.username, "ip": get_remote_address()})
        return error("invalid credentials", status=401)
    logger.info({"event": "login", "username": data.username})
    return ok(_token_pair(data.username), message="Logged in")


@auth_bp.route("/refresh", methods=["POST"])
@validate_schema(RefreshRequest)
def refresh_tokens():
    data: RefreshRequest = request.validated_data
    try:
        payload = decode_token(data.refresh_token, expected_type="refresh")
    except TokenError as e:
        return error(str(e), status=401)
    return ok(_token_pair(payload["sub"]), message="Token refreshed")
