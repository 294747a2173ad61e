"""HTTP API for the thought graph."""
