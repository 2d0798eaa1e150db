"""YAML configuration and device persistence."""
