"""nlm — link local packages into consumer projects without publishing them."""

__version__ = "0.1.0"
