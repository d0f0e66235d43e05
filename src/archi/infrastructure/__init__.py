"""Infrastructure adapters: database, repositories and blob storage."""
