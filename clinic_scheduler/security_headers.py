"""
Security Headers Middleware

The API only ever returns JSON and CSV exports containing patient and
payment data, so responses are never framed, sniffed or cached, and the
browser is denied every optional feature.
"""

import logging
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from .config import IS_PRODUCTION

logger = logging.getLogger(__name__)

# Nothing served by this API needs to load or embed other resources
CONTENT_SECURITY_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'none'"

DISABLED_BROWSER_FEATURES = ("camera", "geolocation", "microphone", "payment", "usb", "interest-cohort")

NO_STORE = "no-store, no-cache, must-revalidate"


def build_security_headers(production: bool = IS_PRODUCTION) -> dict[str, str]:
    headers = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "no-referrer",
        "Content-Security-Policy": CONTENT_SECURITY_POLICY,
        "Permissions-Policy": ", ".join(f"{feature}=()" for feature in DISABLED_BROWSER_FEATURES),
        "X-Permitted-Cross-Domain-Policies": "none",
    }
    if production:
        # HTTPS only once deployed behind a TLS proxy
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the security headers to every response outside `exclude_paths`"""

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ())
        self.headers = build_security_headers()
        logger.debug(f"🔒 Security headers: {sorted(self.headers)}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if request.url.path.startswith(self.exclude_paths):
            return response

        response.headers.update(self.headers)
        # CSV exports set their own Cache-Control
        response.headers.setdefault("Cache-Control", NO_STORE)
        return response
