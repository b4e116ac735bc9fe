"""Go data access layer code generators."""

__version__ = "0.1.0"
