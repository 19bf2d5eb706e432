from pydantic import constr
from billing.schemas import CamelModel


class LoginRequest(CamelModel):
    username: constr(strip_whitespace=True, min_length=1, max_length=100)
    password: constr(min_length=1, max_length=200)


class RefreshRequest(CamelModel):
    refresh_token: constr(min_length=1)
