"""SlowAPI rate limiter singleton.

Uploads are unauthenticated, so limits are keyed on the client address.
Behind a reverse proxy every request shares the proxy's address; raise
``SPMHOST_UPLOAD_RATE_LIMIT`` accordingly.

Usage in route handlers:
    from spmhost.core.limiter import limiter, upload_rate_limit

    @router.post("/some-endpoint")
    @limiter.limit(upload_rate_limit)
    async def handler(request: Request, ...):
        ...

The `Request` parameter is required by SlowAPI even if the handler doesn't
use it directly; it uses it to extract the key.

Route decorators run at import time, before any `Settings` exist, so the
upload limit is a callable. SlowAPI evaluates it on every request and
`create_app` sets its value with `configure_upload_rate_limit`.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_UPLOAD_RATE_LIMIT = "60/minute"

limiter = Limiter(key_func=get_remote_address, default_limits=[])

_upload_rate_limit = DEFAULT_UPLOAD_RATE_LIMIT


def configure_upload_rate_limit(value: str) -> None:
    global _upload_rate_limit
    _upload_rate_limit = value


def upload_rate_limit() -> str:
    return _upload_rate_limit
