"""HTTP API for the access gate."""
