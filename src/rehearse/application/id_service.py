"""Stable identifiers for problems and review plans."""

from ulid import ULID


def generate_problem_id() -> str:
    """Generate a problem ID using ULID."""
    return f"prob_{ULID()}"


def generate_plan_id() -> str:
    """Generate a review plan ID using ULID. Lexical order follows creation order."""
    return f"plan_{ULID()}"
