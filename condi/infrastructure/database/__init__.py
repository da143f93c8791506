from .connection import DatabaseConnectionFactory

__all__ = ["DatabaseConnectionFactory"]
