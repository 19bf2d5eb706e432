from functools import wraps
from flask import request
from pydantic import ValidationError
from .responses import validation_error_response


def validate_schema(schema):
    """Decorator to validate request JSON against a Pydantic schema.

    The parsed model is exposed to the view as ``request.validated_data``.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                obj = schema.model_validate(request.get_json(silent=True) or {})
            except ValidationError as ve:
                return validation_error_response(
                    ve.errors(include_url=False, include_context=False, include_input=False)
                )
            request.validated_data = obj
            return fn(*args, **kwargs)
        return wrapper

    return decorator


def int_arg(name: str, default: int, minimum: int = 0) -> int:
    """Read an integer query parameter, falling back to ``default`` when bad."""
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def bool_arg(*names: str) -> bool:
    for name in names:
        raw = request.args.get(name)
        if raw is not None:
            return raw.strip().lower() in ("1", "true", "yes")
    return False
