"""docaudit - structural checks for Markdown documentation."""

__version__ = "0.1.0"
