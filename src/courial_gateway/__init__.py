"""
courial_gateway

Top-level package for the Courial gateway: the client-side session core and the
phone/OTP proxy service.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file minimal to avoid import-time side effects across the codebase.
