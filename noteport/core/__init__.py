"""Core infrastructure: persistence, object storage and factories."""
