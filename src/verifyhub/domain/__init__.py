"""Domain layer: value objects, the request aggregate, pricing.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
