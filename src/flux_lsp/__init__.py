"""Language server for the Flux query language."""

__version__ = "0.1.0"

__all__ = ["__version__"]
