"""
Pinboard API: Middleware Package
==================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit first: abusive clients are rejected before any work
    2. Request ID: correlation ID for every log line of the request
    3. Logging: method, path, status and duration once the response is ready
"""
