from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Global limiter instance; limits and storage come from the app config
# (RATELIMIT_DEFAULT, RATELIMIT_STORAGE_URI).
limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
)
