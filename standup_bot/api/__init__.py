"""HTTP surface: FastAPI app, messaging endpoint and middleware."""
