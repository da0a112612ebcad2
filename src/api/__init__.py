"""HTTP API layer built on FastAPI.

Key components:
- **main**: Application factory and lifecycle management
- **dependencies**: Injection of the parsed request parameters
- **middleware**: Request context and centralized error handling
- **routes**: Sample endpoints reading parameters, lists and uploads
- **schemas**: Error responses and parameter-backed DTOs
- **utils**: orjson response rendering
"""
