"""Gaia profile builder (Python-first, layer-driven).

Core design goals:
- Deterministic, override-ordered preference and settings resolution
- Reproducible webapp archives
- Explicit build configuration (YAML file, environment, CLI overrides)
- Centralized logging
"""

__all__ = []
