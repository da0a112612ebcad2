"""Pydantic schema models for the API.

- **errors**: Error response bodies shared by every endpoint
- **requests**: Data-transfer objects read from request parameters
"""
