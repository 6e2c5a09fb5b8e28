# Middleware package init
"""
BookCourier Backend — Middleware Package
==========================================

Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject abusive clients before any work
    2. Request ID: correlation id for logs and the X-Request-ID header
    3. Logging: method, path, status and duration with the request id
"""
