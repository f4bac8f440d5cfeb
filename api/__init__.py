"""api/ -- FastAPI application, request filters and routes."""
