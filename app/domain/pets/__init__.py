"""Pet domain - pet records and the species/weight class classification used for pricing"""

from .router import router

__all__ = ["router"]
