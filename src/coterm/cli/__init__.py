"""Command-line entrypoint (`coterm`)."""
