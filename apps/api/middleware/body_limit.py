"""
Request body size limit
Checks the declared Content-Length up front and counts the bytes actually
received, so chunked uploads without a length are capped too.
"""
from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from errors import PayloadTooLargeError


class BodySizeLimitMiddleware:

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length:
            try:
                too_large = int(content_length) > self.max_bytes
            except ValueError:
                response = JSONResponse(status_code=400, content={"detail": "Invalid Content-Length"})
                await response(scope, receive, send)
                return
            if too_large:
                response = JSONResponse(
                    status_code=PayloadTooLargeError.status_code,
                    content={"detail": PayloadTooLargeError.default_detail},
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    # Raised while the handler reads its body; rendered as a 413
                    raise PayloadTooLargeError()
            return message

        await self.app(scope, limited_receive, send)
