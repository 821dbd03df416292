"""Restaurant menu, order and notification services: models, business logic, request handlers, configuration and health checks."""

__version__ = "0.1.0"