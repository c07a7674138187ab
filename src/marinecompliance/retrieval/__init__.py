"""Clients for the enhanced, legacy and health compliance endpoints."""
