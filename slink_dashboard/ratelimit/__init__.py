"""Per-key request rate limiting over a shared counter store."""
