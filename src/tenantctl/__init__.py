"""tenantctl: command line administration of tenants and their databases."""

__version__ = "0.1.0"
