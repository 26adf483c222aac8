"""Command-line entrypoints for oqs-wallet."""
