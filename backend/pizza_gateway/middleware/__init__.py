"""
Pizza Gateway — Middleware Package
===================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [Security Headers]
            → [CORS] → Route (auth dependency → handler)

    Rate limiting runs first so abusive clients are turned away before any
    other work. Responses travel the chain in reverse, which lets the access
    log see the final status and the request ID header reach every response.
"""
