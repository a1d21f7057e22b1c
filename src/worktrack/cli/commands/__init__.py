"""CLI command modules for worktrack."""
