"""Workflow-run descriptor with scoped lifecycle handlers."""

from flowmeta.version import APP_VERSION as __version__

__all__ = ["__version__"]
