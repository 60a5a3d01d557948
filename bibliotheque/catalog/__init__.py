"""
Catalog package for the library manager.

This package contains the ``Livre`` schema, the file-backed store that
keeps the catalogue in ``bibliotheque.json``, the view state shared by
the front ends and the route definitions of the web front end. The
store is the only component that reads or writes the catalogue file.
"""

from .router import router as catalog_router  # noqa: F401
