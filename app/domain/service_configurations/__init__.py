"""Service configuration domain - price/duration per (species, service, weight class)"""

from .router import router

__all__ = ["router"]
