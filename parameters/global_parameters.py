# global_parameters.py


class GlobalParameters:
    def __init__(self, initial_params=None):
        """
        all parameters are defined with underscore, _, instead of spaces
        """
        self._params = {
            # Threshold below which a norm, size or Gram determinant is
            # treated as zero by the degeneracy guards of the kernels.
            "degeneracy_eps": 2.220446049250313e-16,
            # Fixed additive step of the central-difference fallback.
            "fd_eps": 1e-10,
            "poisson_ratio": 0.3,
            # How forces on symmetry-identified vertices are combined:
            #   "add"  – fold both columns onto their sum after the loop.
            #   "none" – leave the per-element accumulation untouched.
            # Functionals that do not specify a policy use this default.
            "symmetry_policy": "add",
            # Overall scale applied by the functional manager when a
            # functional does not carry its own prefactor.
            "prefactor": 1.0,
        }
        if initial_params:
            self.update(initial_params)

    def __getattr__(self, name):
        """Attribute access for known parameter keys.

        ``global_params.fd_eps`` and ``global_params.get("fd_eps")`` read the
        same internal dict.
        """
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            return params[name]
        raise AttributeError(
            f"{type(self).__name__!s} object has no attribute {name!r}"
        )

    def __setattr__(self, name, value):
        """Attribute assignment for known parameter keys."""
        if name == "_params":
            object.__setattr__(self, name, value)
            return
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            params[name] = value
            return
        object.__setattr__(self, name, value)

    def get(self, key, default=None):
        """Retrieve a parameter value, or return a default if not found."""
        return self._params.get(key, default)

    def set(self, key, value):
        """Set or update a parameter."""
        self._params[key] = value

    def update(self, params):
        """Update multiple parameters at once."""
        self._params.update(params)

    def __contains__(self, key):
        return key in self._params

    def __repr__(self):
        return f"GlobalParameters({self._params})"

    def to_dict(self):
        """Convert the parameters to a dictionary for serialization."""
        return self._params
