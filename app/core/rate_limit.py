"""Rate limiting configuration using slowapi."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed on the peer address; proxy headers are resolved by uvicorn --proxy-headers
limiter = Limiter(key_func=get_remote_address)
