"""
Campus Tasker Backend - Middleware Package
==========================================

Middleware Chain (request direction):
    [Request ID] → [Access Log] → [Rate Limit] → [GZip] → [CORS] → Route

    - The request id is set before anything can answer, so 429 bodies and
      access log lines carry it too.
    - Rejected clients still get an access log line, but never reach a route.
    - Responses pass back through in reverse order.
"""
