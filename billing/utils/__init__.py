from .responses import ok, error, validation_error_response
from .auth import auth_required, bearer_token, check_admin_credentials
from .validation import validate_schema, int_arg, bool_arg
from .db import transactional, db_now
from .locks import advisory_lock
from .jwt import (
    create_access_token,
    create_refresh_token,
    decode_token,
    TokenError,
)

__all__ = [
    'ok',
    'error',
    'validation_error_response',
    'auth_required',
    'bearer_token',
    'check_admin_credentials',
    'create_access_token',
    'create_refresh_token',
    'decode_token',
    'TokenError',
    'validate_schema',
    'int_arg',
    'bool_arg',
    'transactional',
    'db_now',
    'advisory_lock',
]
