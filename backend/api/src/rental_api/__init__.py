"""REST API for the rental availability and pricing engine."""
