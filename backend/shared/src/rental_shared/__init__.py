"""Shared domain models and services for the rental backend."""
