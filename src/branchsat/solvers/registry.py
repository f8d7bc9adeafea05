"""
Name-to-class lookup for the solvers, so the CLI and the configuration can
select a solver by the name stored in ``solver.name``.
"""

import logging
from collections.abc import Callable

from branchsat.utils.exceptions import ConfigurationError

from .base import SolverBase

logger = logging.getLogger(__name__)


class SolverRegistry:
    """
    Class-level registry of solver classes.

    Solver modules register themselves on import through ``register_solver``;
    importing ``branchsat.solvers`` therefore fills the registry.
    """

    _registry: dict[str, type[SolverBase]] = {}

    @classmethod
    def register(cls, name: str, solver_cls: type[SolverBase]) -> None:
        """
        Register ``solver_cls`` under ``name``.

        Raises:
            TypeError: If solver_cls does not derive from SolverBase
        """
        if not (isinstance(solver_cls, type) and issubclass(solver_cls, SolverBase)):
            raise TypeError(f"{solver_cls!r} is not a SolverBase subclass")

        existing = cls._registry.get(name)
        if existing is not None and existing is not solver_cls:
            logger.warning(
                f"Solver '{name}' now maps to {solver_cls.__name__} "
                f"instead of {existing.__name__}"
            )
        cls._registry[name] = solver_cls

    @classmethod
    def register_as(cls, name: str) -> Callable[[type[SolverBase]], type[SolverBase]]:
        """Class decorator form of register(); also sets ``solver_name``."""

        def decorator(solver_cls: type[SolverBase]) -> type[SolverBase]:
            solver_cls.solver_name = name
            cls.register(name, solver_cls)
            return solver_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[SolverBase]:
        """
        Solver class registered under ``name``.

        Raises:
            ConfigurationError: If no solver has that name
        """
        try:
            return cls._registry[name]
        except KeyError:
            known = ", ".join(sorted(cls._registry)) or "none"
            raise ConfigurationError(
                f"Unknown solver '{name}' (registered: {known})"
            ) from None

    @classmethod
    def list_solvers(cls) -> list[str]:
        return sorted(cls._registry)

    @classmethod
    def create(cls, name: str, **kwargs) -> SolverBase:
        """Instantiate the solver registered under ``name`` with ``kwargs``."""
        return cls.get(name)(**kwargs)


register_solver = SolverRegistry.register_as
