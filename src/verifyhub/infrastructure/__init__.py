"""Infrastructure layer: SQLite storage, repositories, distance lookup.

Repositories translate between table rows and domain models. This layer
never imports from services, commands, or output.
"""
