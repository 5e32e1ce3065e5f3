"""URL shortener service: short-code generation, redirects and per-IP rate limiting."""

__version__ = "1.0.0"
