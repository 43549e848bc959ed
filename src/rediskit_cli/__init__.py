"""Command-line interface for rediskit-cache."""
