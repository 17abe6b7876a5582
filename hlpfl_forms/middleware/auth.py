"""Request authentication pipeline.

Every request passes through these stages in order, stopping at the first
one that produces a response:

1. CORS preflight (OPTIONS) answered with 204.
2. Health check forwarded without rate limiting or auth.
3. Global per-client rate limit.
4. Route classification for /api/* paths:
   - public form submission: per-form, per-client rate limit
   - auth endpoints: register/login throttled per client
   - CSRF token fetch: bearer token required
   - everything else: bearer token required, plus X-CSRF-Token on
     mutating methods when the policy enforces CSRF
5. The route handler (404 if nothing matches).

Security and CORS headers are written onto every response after the handler
runs, including error responses, so a handler cannot drop them. Exceptions
escaping a handler are logged and turned into a generic 500.
"""

import logging
import time
from enum import Enum

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from hlpfl_forms.core.exceptions import InternalError, error_response
from hlpfl_forms.core.request_utils import extract_bearer_token, get_client_id
from hlpfl_forms.dependencies import AppServices
from hlpfl_forms.middleware.security_headers import apply_headers, response_headers
from hlpfl_forms.security import SUBJECT_CLAIM

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"
HEALTH_PATH = "/api/health"
SUBMIT_PREFIX = "/api/submit/"
CSRF_TOKEN_PATH = "/api/csrf-token"
AUTH_PREFIX = "/api/auth/"
AUTH_PATHS = frozenset(
    {
        "/api/auth/register",
        "/api/auth/login",
        "/api/auth/logout",
        "/api/auth/refresh",
        "/api/auth/verify",
    }
)
# Only credential-guessing endpoints get the tighter auth budget
THROTTLED_AUTH_PATHS = frozenset({"/api/auth/register", "/api/auth/login"})

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

CSRF_HEADER = "X-CSRF-Token"


class RouteClass(str, Enum):
    PASSTHROUGH = "passthrough"
    PUBLIC = "public"
    AUTH = "auth"
    CSRF_TOKEN = "csrf_token"
    PROTECTED = "protected"


def classify_route(method: str, path: str) -> tuple[RouteClass, str | None]:
    """Classify a request. Returns the form id for public submissions."""
    if not path.startswith(API_PREFIX):
        return RouteClass.PASSTHROUGH, None

    if method == "POST" and path.startswith(SUBMIT_PREFIX):
        form_id = path[len(SUBMIT_PREFIX) :]
        if form_id and "/" not in form_id:
            return RouteClass.PUBLIC, form_id

    if path in AUTH_PATHS:
        return RouteClass.AUTH, None

    if path == CSRF_TOKEN_PATH:
        return RouteClass.CSRF_TOKEN, None

    return RouteClass.PROTECTED, None


def _unauthorized(error: str, message: str) -> Response:
    return error_response(401, error, message, headers={"WWW-Authenticate": "Bearer"})


class AuthMiddleware(BaseHTTPMiddleware):
    """Rate limiting, bearer-token auth, CSRF enforcement and header injection."""

    def __init__(self, app: ASGIApp, services: AppServices) -> None:
        super().__init__(app)
        self.services = services
        self.headers = response_headers(services.policy.cors_origin)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        path = request.url.path
        method = request.method
        client_id = get_client_id(request)

        try:
            response = await self._process(request, call_next, client_id)
        except Exception:
            logger.exception(f"Unhandled error for {method} {path}")
            response = InternalError().to_response()

        apply_headers(response, self.headers)

        if path.startswith(API_PREFIX):
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.info(
                f"{method} {path} {response.status_code} {duration_ms}ms ip={client_id}",
                extra={
                    "method": method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "client_id": client_id,
                },
            )
        return response

    async def _process(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
        client_id: str,
    ) -> Response:
        path = request.url.path
        method = request.method
        policy = self.services.policy
        limiter = self.services.rate_limiter
        limits = policy.rate_limits

        if method == "OPTIONS":
            return Response(status_code=204)

        # Monitoring must not eat into any client's request budget
        if path == HEALTH_PATH:
            return await call_next(request)

        rate_headers: dict[str, str] = {}
        if limits.general is not None:
            decision = await limiter.check(client_id, limits.general)
            if not decision.allowed:
                return error_response(
                    429,
                    "Rate limit exceeded",
                    "Too many requests. Please try again later.",
                    headers=decision.headers,
                )
            rate_headers = decision.headers

        route, form_id = classify_route(method, path)

        if route is RouteClass.PUBLIC and limits.form_submission is not None:
            decision = await limiter.check(f"form:{form_id}:{client_id}", limits.form_submission)
            if not decision.allowed:
                return error_response(
                    429,
                    "Too many submissions",
                    "Please wait before submitting again.",
                    headers=decision.headers,
                )

        elif route is RouteClass.AUTH:
            if method == "POST" and path in THROTTLED_AUTH_PATHS and limits.auth is not None:
                decision = await limiter.check(f"auth:{client_id}", limits.auth)
                if not decision.allowed:
                    return error_response(
                        429,
                        "Too many authentication attempts",
                        "Please try again later.",
                        headers=decision.headers,
                    )

        elif route in (RouteClass.CSRF_TOKEN, RouteClass.PROTECTED):
            rejection = await self._authenticate(request, route)
            if rejection is not None:
                return rejection

        response = await call_next(request)
        for key, value in rate_headers.items():
            response.headers.setdefault(key, value)
        return response

    async def _authenticate(self, request: Request, route: RouteClass) -> Response | None:
        """Resolve the bearer token onto ``request.state``; return a rejection on failure."""
        method = request.method
        path = request.url.path

        token = extract_bearer_token(request)
        if not token:
            logger.debug(f"Request without token: {method} {path}")
            return _unauthorized("Authentication required", "Please login to access this resource.")

        claims = await self.services.tokens.verify(token)
        if claims is None:
            logger.warning(f"Invalid token for: {method} {path}")
            return _unauthorized("Invalid or expired token", "Please login again.")

        request.state.claims = claims
        request.state.token = token

        if (
            route is RouteClass.PROTECTED
            and self.services.policy.enforce_csrf
            and method in MUTATING_METHODS
        ):
            subject = claims.get(SUBJECT_CLAIM)
            candidate = request.headers.get(CSRF_HEADER)
            if subject is None or not await self.services.sessions.validate_csrf(
                subject, candidate
            ):
                logger.warning(f"CSRF validation failed for: {method} {path}")
                return error_response(
                    403, "CSRF validation failed", "Invalid or expired CSRF token."
                )

        return None
