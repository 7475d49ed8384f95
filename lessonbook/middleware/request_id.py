"""
Pure ASGI request-id and timing middleware.

Assigns (or propagates) ``X-Request-ID``, makes it available to log records
through the request context, and logs request timing.
"""

import logging
import re
import time

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.request_context import reset_request_id, set_request_id
from ..core.ulid_helper import generate_ulid
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._\-]{1,128}$")
SLOW_REQUEST_MS = 500
_UNTIMED_PATHS = {"/health", "/metrics"}


class RequestIdMiddleware:
    """
    Pure ASGI middleware to tag each request with an id and measure it.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = Headers(scope=scope).get(REQUEST_ID_HEADER)
        request_id = incoming if incoming and _VALID_REQUEST_ID.match(incoming) else generate_ulid()
        token = set_request_id(request_id)

        path = scope.get("path", "")
        method = scope.get("method", "")
        timed = path not in _UNTIMED_PATHS
        start_time = time.time()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                process_time = (time.time() - start_time) * 1000
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
                headers["X-Process-Time"] = f"{process_time:.2f}ms"

                if timed:
                    status_code = message.get("status", 0)
                    logger.info(f"{method} {path} -> {status_code} in {process_time:.2f}ms")
                    prometheus_metrics.record_http_request(method, status_code, process_time / 1000)
                    if process_time > SLOW_REQUEST_MS:
                        logger.warning(f"Slow request: {method} {path} took {process_time:.2f}ms")

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(f"Error in request {method} {path} after {process_time:.2f}ms: {str(e)}")
            raise
        finally:
            reset_request_id(token)
