"""Analytics engine backends."""
