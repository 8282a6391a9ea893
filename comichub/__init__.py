"""ComicHub storefront order backend."""

__version__ = "0.3.0"
