"""Command line interface for duct."""
