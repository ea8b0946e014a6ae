"""HTTP routers for the relationship core."""
