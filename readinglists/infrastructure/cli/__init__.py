"""Command line interface for reading list maintenance."""
