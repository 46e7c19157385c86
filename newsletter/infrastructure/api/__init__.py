"""HTTP transport adapter for the newsletter service."""
