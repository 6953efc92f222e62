"""wsfn: web service functions for static sites.

Configuration loading, safe static file serving, CORS, redirects,
reverse proxy tables and a Basic-Auth access gate.
"""

__version__ = "0.1.0"
