"""CLI commands for duct."""
