"""Built-in CLI command groups for clashkeys."""
