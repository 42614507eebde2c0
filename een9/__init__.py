"""HTTP server engine with request parsing, admin-control protocol, static assets and HTML templates."""

__version__ = "0.1.0"