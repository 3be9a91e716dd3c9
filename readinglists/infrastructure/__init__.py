"""Infrastructure: persistence and command line."""
