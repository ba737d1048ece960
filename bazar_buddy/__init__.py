"""Bazar Buddy - household grocery lists with price estimates."""

__version__ = "0.1.0"
