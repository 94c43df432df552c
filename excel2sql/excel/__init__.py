"""Spreadsheet reading."""
