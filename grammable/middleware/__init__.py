"""
Grammable — Middleware Package
================================

Middleware Chain (request direction):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate Limit first: abusive credential submissions are rejected before
      any other work
    - Request ID before Logging: the access log line carries the ID
"""
