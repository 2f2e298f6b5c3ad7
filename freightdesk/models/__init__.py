"""
SQLModel table models.

Importing this package registers every table with SQLModel.metadata, which is
what Alembic and the test database setup build the schema from.

For modifications:
1. Edit the appropriate model file in freightdesk/models/
2. Create an Alembic migration to reflect the changes
"""

from freightdesk.models.customer import Customers
from freightdesk.models.pilot import Pilots
from freightdesk.models.refresh_token import RefreshTokens, TokenStatus
from freightdesk.models.user import Users

__all__ = [
    "Users",
    "Customers",
    "Pilots",
    "RefreshTokens",
    "TokenStatus",
]
