# Routes package init
"""
msbase — Bundled Controllers
=============================

Route Inventory:
    - health.py:  GET /health   (liveness probe, mounted under the API prefix)

Design Principle:
    Controllers are THIN: read what they need from the request and the
    request context, call a service, return an APIResponse. Failures are
    raised as taxonomy errors and rendered by the server.
"""
