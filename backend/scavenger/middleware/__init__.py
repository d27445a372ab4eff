# Middleware package init
"""
Scavenger Hunt Backend - Middleware Package
============================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    Rate limiting rejects abusive clients before any other work; the request
    id is assigned before the access log line needs it.
"""
