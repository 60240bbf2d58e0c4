"""Portfolio website API - Backend.

Serves the content of a personal portfolio site:
- Catalog resources (skills, projects, courses, certifications) are publicly readable
  and admin-writable.
- Contact messages are publicly submitted and admin-managed; each new message triggers
  a best-effort email to the site owner.

Everything lives in a single MongoDB database, one collection per resource.

See DESIGN.md for the layout.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
