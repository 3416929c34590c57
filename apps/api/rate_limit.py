from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared by the route decorators; create_app() switches it on or off
limiter = Limiter(key_func=get_remote_address)

REGISTER_LIMIT = "3/minute"
LOGIN_LIMIT = "5/minute"
