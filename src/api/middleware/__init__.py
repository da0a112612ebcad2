"""Request context middleware and the exception handlers rendering errors."""
