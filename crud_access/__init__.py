"""
crud-access: authorization-aware field resolution and eager-load planning
for metadata-driven CRUD applications built on Django.
"""

from .defaults import LIBRARY_NAME, LIBRARY_VERSION

__version__ = LIBRARY_VERSION

__all__ = ["LIBRARY_NAME", "LIBRARY_VERSION", "__version__"]
