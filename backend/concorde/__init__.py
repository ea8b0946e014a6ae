"""Concorde relationship backend: users, servers, channels and friendships."""

__version__ = "0.4.0"
