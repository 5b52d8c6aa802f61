"""Domain layer for propfin. Services are imported from their own modules."""
