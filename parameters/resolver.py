"""Utility for resolving per-functional parameters.

Options passed when a functional is built override the global
parameters; anything not given falls back to the global value.
"""

from __future__ import annotations

from parameters.global_parameters import GlobalParameters


class ParameterResolver:
    """Resolve parameters with optional per-object overrides."""

    def __init__(self, global_params: GlobalParameters | None = None):
        self.global_params = global_params if global_params is not None else GlobalParameters()

    def get(self, obj, name: str, default=None):
        """Return parameter ``name`` for ``obj`` or the global default.

        ``obj`` may be ``None``, a mapping of options, or anything with an
        ``options`` mapping.
        """
        fallback = self.global_params.get(name, default)
        if obj is None:
            return fallback
        options = obj if isinstance(obj, dict) else getattr(obj, "options", None)
        if not options:
            return fallback
        value = options.get(name)
        return fallback if value is None else value
