"""URL collector: indexable URLs from a site's sitemap."""

from collector.sitemap import collect_urls, load_sitemap, parse_sitemap_xml

__all__ = ["collect_urls", "load_sitemap", "parse_sitemap_xml"]
