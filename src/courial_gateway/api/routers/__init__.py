"""
courial_gateway.api.routers

Router modules grouped by endpoint family.
"""

# Package marker.
