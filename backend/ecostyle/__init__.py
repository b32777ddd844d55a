"""EcoStyle sustainable fashion store backend."""

__version__ = "1.0.0"
