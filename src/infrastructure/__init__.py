"""Infrastructure layer: integrations with external systems such as the database."""
