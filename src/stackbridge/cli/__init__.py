"""Command-line interface for stackbridge."""
