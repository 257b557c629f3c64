"""
courial_gateway.api

HTTP layer: FastAPI app factory, middleware, dependencies and routers.
"""

# Package marker.
