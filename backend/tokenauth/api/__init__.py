"""Thin HTTP glue: service wiring and the request-authentication decorator."""
