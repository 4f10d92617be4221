"""Request parsing, result serialization and table definition services."""
