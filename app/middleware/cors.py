"""
CORS for browser clients of the CRM API.

The bundled front end is served from the same origin and does not need it.
Separately hosted dashboards do: list their origins in CORS_ALLOWED_ORIGINS.
The default ["*"] answers any origin and never advertises credentials.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.infrastructure.observability.logging import get_logger
from app.middleware.error_handlers import internal_error_response

logger = get_logger(__name__)

WILDCARD = "*"

DEFAULT_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"]
DEFAULT_HEADERS = [
    "Accept",
    "Accept-Language",
    "Content-Type",
    "Content-Language",
    "X-Request-ID",
    "X-Requested-With",
]


class CORSMiddleware(BaseHTTPMiddleware):
    """Answers preflight requests and stamps allow-origin headers on responses."""

    def __init__(
        self,
        app,
        allowed_origins: list[str] | None = None,
        allow_credentials: bool = False,
        allow_methods: list[str] | None = None,
        allow_headers: list[str] | None = None,
        max_age: int = 600,
    ):
        """
        Args:
            app: ASGI application
            allowed_origins: Trusted dashboard origins, or ["*"] for any origin
            allow_credentials: Advertise credentials (never with "*")
            allow_methods: Methods listed in preflight answers
            allow_headers: Request headers listed in preflight answers
            max_age: Seconds a browser may cache a preflight answer
        """
        super().__init__(app)
        self.allowed_origins = allowed_origins or []
        self.allow_any_origin = WILDCARD in self.allowed_origins
        self.allow_credentials = allow_credentials and not self.allow_any_origin
        self.allow_methods = allow_methods or DEFAULT_METHODS
        self.allow_headers = allow_headers or DEFAULT_HEADERS
        self.max_age = max_age

        logger.info(
            "CORS configured",
            allowed_origins=self.allowed_origins,
            allow_credentials=self.allow_credentials,
        )

    def _is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        return self.allow_any_origin or origin in self.allowed_origins

    def _origin_header(self, origin: str) -> str:
        return WILDCARD if self.allow_any_origin else origin

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        allowed = self._is_allowed(origin)

        if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
            if allowed:
                return self._preflight(origin)
            logger.warning("CORS preflight rejected", origin=origin)
            return Response(status_code=403, content="Origin not allowed")

        try:
            response = await call_next(request)
        except Exception as e:
            response = internal_error_response(request, e)

        if allowed:
            response.headers["Access-Control-Allow-Origin"] = self._origin_header(origin)
            if self.allow_credentials:
                response.headers["Access-Control-Allow-Credentials"] = "true"
            if not self.allow_any_origin:
                response.headers["Vary"] = "Origin"
        elif origin:
            logger.warning("CORS origin not allowed", origin=origin, path=request.url.path)

        return response

    def _preflight(self, origin: str) -> Response:
        headers = {
            "Access-Control-Allow-Origin": self._origin_header(origin),
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return Response(status_code=204, headers=headers)
