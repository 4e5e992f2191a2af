"""Dependency solver and expression visitors."""

from depslice.solver.solver import DepSolver
from depslice.solver.visitors import TraversalContext

__all__ = ["DepSolver", "TraversalContext"]
