"""Persistence layer for reading lists."""
