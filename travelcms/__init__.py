"""
travelcms
=========

Content tooling for the travel agency website: a client for the headless
content store, the site's content queries, and the batch job that uploads
static images and links them to destinations and packages.
"""

__version__ = "1.0.0"
