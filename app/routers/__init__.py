from . import health, todos, users


__all__ = ["health", "todos", "users"]
