"""Command-line tools for the price exchange."""
