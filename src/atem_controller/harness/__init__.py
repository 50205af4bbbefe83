"""Command-line harnesses."""
