"""Shared CLI, pipeline and YAML helpers."""
