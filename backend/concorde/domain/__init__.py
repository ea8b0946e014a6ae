"""Relationship engines and the domain types they share."""
