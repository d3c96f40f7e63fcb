"""FastAPI routers for the discovery service."""
