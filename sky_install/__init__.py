"""sky-install: fetch SCAII repositories and their bundled libraries."""

__version__ = "0.1.0"
