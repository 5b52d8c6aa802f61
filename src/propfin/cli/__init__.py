"""Command-line interface for propfin."""
