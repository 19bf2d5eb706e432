from .auth import auth_bp
from .items import items_bp
from .bills import bills_bp


__all__ = [
    'auth_bp',
    'items_bp',
    'bills_bp',
]
