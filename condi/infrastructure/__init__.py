"""
Infrastructure package: external parameter sources and database connections.
"""
