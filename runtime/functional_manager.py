# runtime/functional_manager.py

import importlib
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from geometry.mesh import Mesh
from geometry.selection import Selection
from parameters.global_parameters import GlobalParameters
from runtime.reduction import KahanSum

logger = logging.getLogger("mesh_functionals")


def _normalize_spec(spec) -> Tuple[str, Dict[str, Any]]:
    if isinstance(spec, str):
        return spec, {}
    if isinstance(spec, dict):
        options = dict(spec)
        try:
            name = options.pop("name")
        except KeyError:
            raise ValueError(f"Functional spec {spec!r} has no 'name'.") from None
        return str(name), options
    name, options = spec
    return str(name), dict(options or {})


class FunctionalManager:
    """Load functional modules by name and evaluate their weighted sum.

    ``specs`` entries are module names under ``modules.energy`` (``"area"``),
    dicts with a ``"name"`` key plus build options, or ``(name, options)``
    pairs. A ``prefactor`` option scales that functional's contribution.
    """

    def __init__(self, specs: Iterable, global_params: Optional[GlobalParameters] = None):
        self.global_params = global_params if global_params is not None else GlobalParameters()
        self.modules: Dict[str, Any] = {}
        self.functionals: List[Tuple[str, float, Any]] = []

        normalized = [_normalize_spec(s) for s in specs]
        counted = Counter(name for name, options in normalized if not options)
        seen_plain = set()
        for name, count in counted.items():
            if count > 1:
                logger.warning(
                    f"Functional '{name}' specified {count} times; using only one instance."
                )

        for name, options in normalized:
            if not options:
                if name in seen_plain:
                    continue
                seen_plain.add(name)
            module = self._load(name)
            prefactor = float(
                options.pop("prefactor", self.global_params.get("prefactor", 1.0))
            )
            functional = module.build_functional(self.global_params, **options)
            self.functionals.append((name, prefactor, functional))

    def _load(self, name: str):
        if name in self.modules:
            return self.modules[name]
        try:
            module = importlib.import_module(f"modules.energy.{name}")
        except ImportError as e:
            logger.error(f"Could not load functional module '{name}': {e}")
            raise
        if not callable(getattr(module, "build_functional", None)):
            raise ImportError(f"Module 'modules.energy.{name}' defines no functional.")
        self.modules[name] = module
        logger.info(f"Loaded functional module: {name}")
        return module

    def get_module(self, mod):
        """
        Retrieve a loaded functional module by name.
        """
        if mod in self.modules.keys():
            return self.modules[mod]
        raise KeyError(f"Functional module '{mod}' not found.")

    def total(
        self, mesh: Mesh, selection: Optional[Selection] = None
    ) -> Optional[float]:
        """Weighted sum of every functional, or ``None`` if none had elements."""
        acc = KahanSum()
        contributed = False
        for name, prefactor, functional in self.functionals:
            value = functional.total(mesh, selection)
            if value is None:
                logger.debug("Functional '%s' has no elements to sum", name)
                continue
            acc.add(prefactor * value)
            contributed = True
        return float(acc) if contributed else None

    def integrand(
        self, mesh: Mesh, selection: Optional[Selection] = None
    ) -> List[Tuple[str, Optional[np.ndarray]]]:
        """Per-element values of every functional, prefactors applied."""
        out = []
        for name, prefactor, functional in self.functionals:
            values = functional.integrand(mesh, selection)
            out.append((name, None if values is None else prefactor * values))
        return out

    def gradient(self, mesh: Mesh, selection: Optional[Selection] = None) -> np.ndarray:
        grad = np.zeros((mesh.dim, mesh.vertex_count), dtype=float)
        for name, prefactor, functional in self.functionals:
            frc = functional.gradient(mesh, selection)
            if frc is not None:
                grad += prefactor * frc
        return grad

    def compute_energy_and_gradient(
        self,
        mesh: Mesh,
        selection: Optional[Selection] = None,
        *,
        compute_gradient: bool = True,
    ) -> Tuple[Optional[float], Optional[np.ndarray]]:
        energy = self.total(mesh, selection)
        if not compute_gradient:
            return energy, None
        return energy, self.gradient(mesh, selection)


__all__ = ["FunctionalManager"]
