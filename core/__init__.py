from .status import Status
from .task import Project, ProjectStatus, Task, TaskTree, normalize_tag
from .sort_key import (
    OrderingInvariantViolation,
    key_between,
    key_after,
    keys_between,
    rebalance,
)
from .text_tokens import (
    TextSegment,
    ProjectToken,
    TagToken,
    UrlToken,
    ParsedTitle,
    tokenize,
    parse_title,
    bare_urls,
    has_bare_urls,
)
from .hierarchy import (
    HierarchyError,
    FlatNode,
    ancestors,
    detect_cycle,
    would_create_cycle,
    validate_parent,
    flatten_tree,
)
from .actionable import compute_actionability, actionable_ids, is_actionable
from .review import is_review_due, review_due, recently_reviewed
from .filter_dsl import (
    FilterField,
    FilterOp,
    FilterQuery,
    Condition,
    And,
    Or,
    Not,
    OrderBy,
    SortDirection,
    FIELD_REGISTRY,
)
from .filter_parser import (
    FilterParseError,
    UnknownField,
    UnknownOperator,
    ParseResult,
    parse,
    parse_filter,
)
from .filter_eval import FilterSnapshot, evaluate, sort_results, filter_tasks
from .filter_context import detect_completion_context, suggest, Suggestion

__all__ = [
    "Status",
    "Project",
    "ProjectStatus",
    "Task",
    "TaskTree",
    "normalize_tag",
    # Ordering
    "OrderingInvariantViolation",
    "key_between",
    "key_after",
    "keys_between",
    "rebalance",
    # Title tokens
    "TextSegment",
    "ProjectToken",
    "TagToken",
    "UrlToken",
    "ParsedTitle",
    "tokenize",
    "parse_title",
    "bare_urls",
    "has_bare_urls",
    # Hierarchy
    "HierarchyError",
    "FlatNode",
    "ancestors",
    "detect_cycle",
    "would_create_cycle",
    "validate_parent",
    "flatten_tree",
    "compute_actionability",
    "actionable_ids",
    "is_actionable",
    "is_review_due",
    "review_due",
    "recently_reviewed",
    # Filter DSL
    "FilterField",
    "FilterOp",
    "FilterQuery",
    "Condition",
    "And",
    "Or",
    "Not",
    "OrderBy",
    "SortDirection",
    "FIELD_REGISTRY",
    "FilterParseError",
    "UnknownField",
    "UnknownOperator",
    "ParseResult",
    "parse",
    "parse_filter",
    "FilterSnapshot",
    "evaluate",
    "sort_results",
    "filter_tasks",
    "detect_completion_context",
    "suggest",
    "Suggestion",
]
