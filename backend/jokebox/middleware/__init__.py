# Middleware package init
"""
Jokebox Backend: Middleware Package
====================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [Session] → [CORS] → Route

    1. Rate Limit first: reject abusive writes before any processing
    2. Request ID: correlation ID for logs and error bodies
    3. Logging: method, path, status, duration with the request ID
    4. Session: decodes the signed cookie into request.session
"""
