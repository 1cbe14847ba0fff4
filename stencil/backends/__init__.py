"""Execution backends that run rendered source with its dependencies."""
