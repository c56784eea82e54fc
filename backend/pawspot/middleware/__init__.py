# Middleware package init
"""
PawSpot API — Middleware Package
=================================

Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Responses pass back through in reverse, so the logging middleware sees
    the final status and the request ID lands in the response headers.
"""
