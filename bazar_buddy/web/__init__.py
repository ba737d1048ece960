"""Printable views and request dependencies."""
