"""HTTP API for the order lifecycle service."""
