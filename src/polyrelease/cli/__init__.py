"""Command line interface for polyrelease."""
