"""Command-line interface for mbutiles."""
