"""Data transfer objects exchanged between the API and application services."""
