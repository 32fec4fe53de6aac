"""
msbase — Request-Handling Backbone Package
===========================================

What: The shared plumbing every msbase microservice runs on.
Why:  Controllers only declare routes and return responses; everything
      cross-cutting (request IDs, locale, logging, auth gating, error → HTTP
      translation, response writing) lives here once.
Who:  Imported by service entry points (`msbase.main`) and by controllers.

Architecture Note:
    A request flows through these layers:

    ┌─────────────────────────────────────┐
    │        Server (route dispatch)      │  ← builds one chain per route
    ├─────────────────────────────────────┤
    │        Middleware chain             │  ← request ID → locale → logging → auth
    ├─────────────────────────────────────┤
    │        Controller handler           │  ← returns an APIResponse value
    ├─────────────────────────────────────┤
    │   Error mapper  +  Response writer  │  ← status/message, headers → status → body
    └─────────────────────────────────────┘

    Controllers never touch the transport. Errors raised anywhere in the
    chain end up at the server's single error handler, which is the only
    place HTTP status codes for failures are chosen.
"""

__version__ = "1.0.0"
