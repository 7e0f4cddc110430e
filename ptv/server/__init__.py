"""HTTP conversion endpoint (FastAPI)."""
