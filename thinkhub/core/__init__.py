"""Platform core: exception hierarchy."""
