"""Flow discovery and change-impact analysis for web application repositories."""

__version__ = "0.1.0"
