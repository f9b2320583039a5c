"""Domain layer — field paths, documents, markers, and registry models.

This layer depends only on stdlib, pydantic, and ruamel.yaml.
It must never import from services, infrastructure, commands, or config.
"""
