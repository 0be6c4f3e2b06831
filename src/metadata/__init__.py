"""Workspace metadata snapshot models and loader."""
