"""stackhost read-only HTTP API."""
