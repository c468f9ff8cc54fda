"""Command line interface for the deploy engine."""
