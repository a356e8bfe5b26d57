from .kelowna import KelownaSource
from .muscat import MuscatSource

__all__ = ["KelownaSource", "MuscatSource"]
