"""parserctl — install, update and pin compiled parser modules."""

__version__ = "0.1.0"
