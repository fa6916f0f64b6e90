"""Adapters for the Safe Transaction Service, chain execution and the HTTP API."""
