# Middleware package init
"""
Notes API — Middleware Package
===============================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → Route Handler

    1. CORS outermost: preflight answers and CORS headers also reach
       error responses (429, 404, ...)
    2. Request ID: correlation ID for logs and the X-Request-ID header
    3. Logging: method, path, status and duration of each request

Write throttling is not a middleware; it is the `require_admission`
dependency in notes_api.rate_limit, attached to the write routes only.
"""
