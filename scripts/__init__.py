"""Operational scripts for the SaveIt.AI backend."""
