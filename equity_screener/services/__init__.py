"""Market data, synthetic data and favorites services."""
