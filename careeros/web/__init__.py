"""FastAPI surface for CareerOS sessions."""
