"""
courial_gateway.courial

Courial upstream package.

Responsibilities:
- Provide the HTTP client boundary for the courier backend's user APIs.
- Interpret upstream responses (logical success/failure, status mapping).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers depend on this boundary (not on httpx directly).
