"""Plan-tier and usage-quota checks."""
