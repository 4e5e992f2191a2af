"""DepSlice - carve the minimal compilable slice of a Java codebase around chosen methods."""

__version__ = "0.1.0"
