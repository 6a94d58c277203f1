"""upgit: pull every repository in a directory, in parallel."""

__version__ = "0.1.0"
