"""Parsers for uploaded files."""

from app.parsers.json_reader import JsonReader

__all__ = ["JsonReader"]
