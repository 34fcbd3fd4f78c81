"""HTTP layer: FastAPI dependencies and routes."""
