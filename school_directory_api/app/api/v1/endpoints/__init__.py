"""
Endpoint modules for API v1.

``common.to_http_exception`` maps the service layer's domain
exceptions to HTTP status codes so each handler can stay a thin
try/except around its service call.
"""
