"""Core types, configuration and errors shared by every engine module."""
