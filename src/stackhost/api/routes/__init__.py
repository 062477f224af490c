"""HTTP host routes."""
