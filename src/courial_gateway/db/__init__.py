"""
courial_gateway.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide the role-store ORM model, engine/session setup, and repositories.
"""

# Package marker.
