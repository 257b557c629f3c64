"""
courial_gateway.auth

Authentication package.

Responsibilities:
- Session token helpers (JWT) and the session/user domain model.
- The client-side session core: auth provider, role lookup, session resolver.
- FastAPI dependencies turning a bearer token into a `User`.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `resolver` is the only module with concurrency concerns; everything else here is
# plain request/response code.
