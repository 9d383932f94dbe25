"""rowbridge - CSV import and export driven by per-entity mapping configurations."""

__version__ = "0.1.0"
