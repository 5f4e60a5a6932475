"""Pydantic schemas: the remote run log wire contract and the local API."""
