"""Shared infrastructure: logging configuration and position hashing."""
