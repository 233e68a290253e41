"""Scoring, optimization, and project analysis for context loading.

Provides the relevance scorer used to rank candidate files, the content
optimizer that fits text into a token budget, and the project analyzer
that describes a source tree's layout.
"""

from repoctx.context.analyzer import ProjectAnalyzer
from repoctx.context.optimizer import ContextOptimizer
from repoctx.context.scorer import RelevanceScorer
from repoctx.context.tokens import estimate_tokens, estimate_tokens_fast

__all__ = [
    "ContextOptimizer",
    "ProjectAnalyzer",
    "RelevanceScorer",
    "estimate_tokens",
    "estimate_tokens_fast",
]
