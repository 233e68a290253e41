"""Loading strategies that assemble token-bounded file sets."""

from repoctx.strategies.base import LoadingStrategy, TokenBudget
from repoctx.strategies.breadth_first import BreadthFirstLoadingStrategy
from repoctx.strategies.focused import FocusedLoadingStrategy
from repoctx.strategies.progressive import ProgressiveLoadingStrategy

__all__ = [
    "BreadthFirstLoadingStrategy",
    "FocusedLoadingStrategy",
    "LoadingStrategy",
    "ProgressiveLoadingStrategy",
    "TokenBudget",
]
