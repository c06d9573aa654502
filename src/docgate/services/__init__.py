"""Business logic services for the access gate."""
