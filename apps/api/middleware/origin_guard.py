"""
Origin Guard Middleware
Rejects browser requests from origins outside the allow-list before any
route runs. Requests without an Origin header (curl, server-to-server) pass.
"""

import logging
import re
from typing import List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)


class OriginGuardMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, allow_origins: List[str], allow_origin_regex: Optional[str] = None):
        super().__init__(app)
        self.allow_origins = set(allow_origins)
        self.allow_origin_regex = re.compile(allow_origin_regex) if allow_origin_regex else None

    def is_allowed(self, origin: str) -> bool:
        if origin in self.allow_origins:
            return True
        return bool(self.allow_origin_regex and self.allow_origin_regex.fullmatch(origin))

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if origin and not self.is_allowed(origin):
            logger.warning(f"Blocked request from origin {origin}: {request.method} {request.url.path}")
            return JSONResponse(status_code=403, content={"detail": "Origin not allowed"})
        return await call_next(request)
