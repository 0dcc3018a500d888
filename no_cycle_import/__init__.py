"""no-cycle-import: detect cyclic ES module imports."""

__version__ = "0.1.0"
