"""Core types, configuration and errors for rediskit-cache."""
