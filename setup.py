from __future__ import annotations

from setuptools import find_namespace_packages, setup

PACKAGES = [
    "core",
    "geometry",
    "mesh_functionals",
    "modules",
    "modules.energy",
    "parameters",
    "runtime",
    "visualization",
]

setup(
    name="mesh-functionals",
    version="0.1.0",
    description=(
        "Totals, per-element maps and vertex gradients of geometric "
        "functionals on simplicial meshes."
    ),
    python_requires=">=3.9",
    packages=find_namespace_packages(include=PACKAGES),
    install_requires=[
        "numpy",
        "scipy",
        "PyYAML",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
