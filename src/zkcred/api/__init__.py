"""HTTP API (requires the ``api`` extra)."""
