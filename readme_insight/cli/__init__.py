"""Command-line interface for readme-insight."""
