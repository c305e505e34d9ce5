"""verwalker - crawl repository accounts into a package dependency index."""

__version__ = "0.1.0"
