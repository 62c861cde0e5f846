"""Infrastructure layer: database access and the Store."""
