"""Cross-cutting pieces shared by the HTTP layer and the API.

- **config**: pydantic-settings configuration, including request parsing limits
- **context**: correlation ID of the request being served
- **exceptions**: ``RelayError`` and the request parameter error taxonomy
- **logging**: Loguru setup and formatters
- **types**: shared type aliases
"""
