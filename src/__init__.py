"""Relay - RPC-over-HTTP request parameter layer.

Architecture Overview:
- **HTTP Layer**: Parsing of inbound requests into typed, validated parameters
- **API Layer**: FastAPI application, dependencies and sample endpoints
- **Core Layer**: Configuration, logging, request context and exceptions
- **Infrastructure Layer**: The persistence context (async SQLAlchemy sessions)
"""
