from .spacetime_grid import SpacetimeGrid

__all__ = ["SpacetimeGrid"]
