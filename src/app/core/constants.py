"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Slugs and database identifiers
# PostgreSQL truncates identifiers at 63 bytes; "tenant_" + slug + "_yyyy"
# must fit, so slugs stop at 50 characters.
MAX_SLUG_LENGTH = 50
MAX_DATABASE_NAME_LENGTH = 63
SLUG_PATTERN = r"^[a-z0-9][a-z0-9_-]*$"
DATABASE_NAME_PATTERN = r"^[a-z0-9_-]+$"
DEFAULT_DB_NAME_PATTERN = "tenant_{slug}_{year}"
DB_NAME_PLACEHOLDER = "{db_name}"
DB_NAME_YEAR_PATTERN = r"_(\d{4})$"

# Routing
DEFAULT_RESERVED_SUBDOMAINS = "www,admin,api"
TENANT_YEAR_HEADER = "X-Tenant-Year"

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_DOMAIN_LENGTH = 255
MAX_STATUS_LENGTH = 20
MAX_STEP_LENGTH = 40
MAX_AGENCY_ID_LENGTH = 64
MAX_ACTION_LENGTH = 50
MAX_RESOURCE_TYPE_LENGTH = 100

# Pagination defaults
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Generated credentials
GENERATED_PASSWORD_BYTES = 12
BCRYPT_ROUNDS = 12

# Tenant storage layout
STORAGE_SUBDIRECTORIES = (
    "branding",
    "uploads",
    "documents",
    "exports",
    "backups",
    "temp",
)
