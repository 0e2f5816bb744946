from .categorizer import CATEGORY_RULES, RULES_VERSION, categorize_result
from .deep_search import DeepSearchOrchestrator, deep_search, select_linkedin_candidates, visibility_tier
from .executor import ExecutionOutcome, SearchExecutor
from .platform import identify_platform
from .scoring import calculate_relevance

__all__ = [
    "CATEGORY_RULES",
    "RULES_VERSION",
    "categorize_result",
    "DeepSearchOrchestrator",
    "deep_search",
    "select_linkedin_candidates",
    "visibility_tier",
    "ExecutionOutcome",
    "SearchExecutor",
    "identify_platform",
    "calculate_relevance",
]
