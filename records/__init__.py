"""Records system: data model, persistence, services and HTTP routes."""
