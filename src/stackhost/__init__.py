"""Host surfaces for stackcore: stack program entry, CLI and HTTP API."""

__version__ = "0.1.0"
