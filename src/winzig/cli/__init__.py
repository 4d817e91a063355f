"""Command-line interface for winzig."""
