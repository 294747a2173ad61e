"""Thought pipeline services."""
