"""indexnow-submit: sitemap collection, IndexNow submission and audit logging."""

__version__ = "0.1.0"
