"""CLI command implementations for carbonlint."""
