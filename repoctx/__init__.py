"""repoctx: token-budgeted context loading for source trees."""

__version__ = "0.1.0"

from .aggregator import ContextAggregator
from .schemas.context import Context, LoadedContext, LoadingOptions

__all__ = ["Context", "ContextAggregator", "LoadedContext", "LoadingOptions"]
