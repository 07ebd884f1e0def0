"""
Shared module for common utilities used by the menu API and the CLI.

STRUCTURE:
- shared.security: Session tokens
  - auth.py: JWT signing/verification, current_session dependency

- shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, transaction()
  - correlation.py: Request ID middleware and logging filter

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Role slugs, menu statuses, line types, transitions

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - validators.py: Currency, price and locale validation
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import current_session
    from shared.infrastructure.db import get_db, transaction
    from shared.config.settings import settings
    from shared.config.constants import MenuStatus, LineType
    from shared.utils.exceptions import NotFoundError, PermissionDeniedError
"""
