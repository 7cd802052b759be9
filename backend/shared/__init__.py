"""
Shared module for common utilities of the POS REST API.

STRUCTURE:
- shared.security: Authentication and authorization
  - auth.py: JWT verification, current_user_context, require_roles
  - password.py: Bcrypt hashing

- shared.infrastructure: Database, messaging and cache
  - db.py: SQLAlchemy sessions, safe_commit(), transactional()
  - events/: Redis pub/sub, event publishing
  - cache/: Redis read cache for table and summary listings
  - correlation.py: X-Request-ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: Roles, OrderStatus, ItemStatus, limits

- shared.utils: Utilities
  - exceptions.py: HTTP mapping of domain errors
  - money.py: cents <-> "20.00"
  - schemas.py: Request/response Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_user_context
    from shared.infrastructure.db import get_db, transactional
    from shared.config.settings import settings
    from shared.config.constants import Roles, OrderStatus
    from shared.utils.money import format_cents
"""
