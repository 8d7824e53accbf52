"""Domain models and entities.

Why:
- Pure, strict data structures (Pydantic v2 and frozen dataclasses) live here.
- The domain knows nothing about HTTP, the CLI or storage: only the concepts
  of the request layer and the hierarchy.
"""
