"""
Nourish - Name normalization.

Utilities for normalizing model/user input for consistent matching.
"""


def normalize_name(name: str) -> str:
    """
    Normalize a name for consistent matching.

    Operations:
    - Lowercase
    - Strip leading/trailing whitespace
    - Collapse multiple spaces to single space

    Examples:
        normalize_name("  Cilantro  ") -> "cilantro"
        normalize_name("Thai   FOOD") -> "thai food"
    """
    return " ".join(name.lower().strip().split())


def contains_pattern(term: str) -> str:
    """ILIKE pattern matching any value that contains `term` (case-insensitive)."""
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
