"""
HTTP security headers for API and storefront responses.

The storefront pages are served from the same origin as the API, so the
content security policy has to allow the inline scripts and Google Fonts the
pages use while keeping framing and plugin content disabled.
"""

from ecostyle.core.config import get_settings

CONTENT_SECURITY_POLICY = {
    "default-src": ["'self'"],
    "style-src": ["'self'", "'unsafe-inline'", "https://fonts.googleapis.com"],
    "font-src": ["'self'", "https://fonts.gstatic.com"],
    "img-src": [
        "'self'",
        "data:",
        "https://via.placeholder.com",
        "https://picsum.photos",
    ],
    "script-src": ["'self'", "'unsafe-inline'"],
    "script-src-attr": ["'unsafe-inline'"],
    "connect-src": ["'self'"],
    "frame-src": ["'none'"],
    "object-src": ["'none'"],
    "base-uri": ["'self'"],
    "form-action": ["'self'"],
    "frame-ancestors": ["'none'"],
    "upgrade-insecure-requests": [],
}


def build_csp(directives: dict[str, list[str]]) -> str:
    """
    Render CSP directives into a header value.

    Args:
        directives: Mapping of directive name to allowed sources

    Returns:
        Header value, directives separated by semicolons
    """
    parts = []
    for name, sources in directives.items():
        parts.append(" ".join([name, *sources]) if sources else name)
    return "; ".join(parts)


def get_csp_headers() -> dict[str, str]:
    """
    Get security headers to attach to every response.

    Returns:
        Mapping of header name to value
    """
    settings = get_settings()

    headers = {
        "Content-Security-Policy": build_csp(CONTENT_SECURITY_POLICY),
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
    }

    if settings.is_production:
        headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

    return headers
