"""Document model, error taxonomy and editing services."""
