# 📄 File: condi/config/__init__.py
#
# 🧭 Purpose (Layman Explanation):
# Contains the settings that tell the registry where to find secrets, how to log and
# how to reach the default database.
#
# 🧪 Purpose (Technical Summary):
# Configuration package initialization with exports for registry settings management.

"""
Configuration Management Package

Handles the registry's own configuration:
- Environment-based settings (CONDI_ prefix)
- Default database wiring parameters and driver table
"""

from .settings import get_settings, Settings

__all__ = [
    "get_settings",
    "Settings",
]
