# Middleware package init
"""
ShutterDesk Backend - Middleware Package
==========================================

Middleware Chain (order matters!):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Rate Limit first: reject login/contact floods before any work
    2. Request ID: correlation id for logs and error envelopes
    3. Logging: one access line per request, with status and duration
    4. CORS: credentials allowed so the session cookie crosses origins in dev
"""
