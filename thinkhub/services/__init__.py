"""Service layer (business logic). Services flush; blueprints commit."""
