"""Read versioned migrations from sources and apply them to database drivers."""

__version__ = "4.0.0"