"""HTTP layer of the EMR Service API."""
