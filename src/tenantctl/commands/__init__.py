"""tenantctl command implementations."""
