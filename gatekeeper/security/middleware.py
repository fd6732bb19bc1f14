"""Request gatekeeper middleware.

Pipeline for paths under the API prefix:
Scope filter -> CORS -> Rate limit -> Security headers -> route handler

Every rejection is answered here with an explicit JSON response; nothing
is raised to the framework. Paths outside the prefix pass through with
no headers added and no rate accounting.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from gatekeeper.config.settings import get_settings
from gatekeeper.logging.audit import RequestTimer, bind_gate_context, get_audit_logger
from gatekeeper.security.cors import CORS_REJECTION_MESSAGE, evaluate_cors
from gatekeeper.security.headers import add_security_headers
from gatekeeper.security.ratelimit import client_key_from_headers
from gatekeeper.security.scope import is_in_scope
from gatekeeper.windows.factory import get_rate_limiter


class GatekeeperMiddleware(BaseHTTPMiddleware):
    """CORS, rate limiting and security headers for API routes."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = get_settings()
        path = request.url.path

        if not is_in_scope(path, settings.api_prefix):
            return await call_next(request)

        logger = get_audit_logger()
        context = bind_gate_context(request.method, path)

        # 1. CORS
        origin = request.headers.get("origin")
        cors = evaluate_cors(origin, settings)
        if not cors.allowed:
            logger.warning(
                "CORS origin rejected",
                extra={"audit_data": {"origin": origin}},
            )
            return JSONResponse(status_code=403, content={"error": CORS_REJECTION_MESSAGE})

        # 2. Preflight never counts against the rate limit
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=cors.headers)

        # 3. Rate limiting (per client identity)
        client_key = client_key_from_headers(request.headers)
        context.client_key = client_key
        result = await get_rate_limiter().check(client_key)
        if not result.allowed:
            logger.warning(
                "Rate limit rejected request",
                extra={"audit_data": {
                    "reason": result.error,
                    "retry_after": result.retry_after,
                }},
            )
            return JSONResponse(
                status_code=429,
                content={"error": result.error},
                headers={"Retry-After": str(result.retry_after)},
            )

        # 4. Forward, then decorate the handler's response
        with RequestTimer() as timer:
            response = await call_next(request)

        for name, value in cors.headers.items():
            response.headers[name] = value
        add_security_headers(response)

        logger.debug(
            "Gated request forwarded",
            extra={"audit_data": {
                "status": response.status_code,
                "latency_ms": timer.elapsed_ms,
                "rate_limit_remaining": result.remaining,
            }},
        )
        return response
