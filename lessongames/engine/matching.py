"""
Bipartite matching checks for matching rounds.

A matching round pairs every left item with exactly one right item. The pairs
are declared by the author, so validity is a direct check rather than a
search: both collections must be the same size and the projection of the pair
set onto each side must be a permutation of ``range(size)``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from lessongames.errors import ValidationError


class MatchingIssueKind(str, Enum):
    """Ways a declared pair set can fail to be a complete matching"""

    SIZE_MISMATCH = "size_mismatch"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    DUPLICATE_LEFT = "duplicate_left"
    DUPLICATE_RIGHT = "duplicate_right"
    LEFT_UNMATCHED = "left_unmatched"
    RIGHT_UNMATCHED = "right_unmatched"


_MESSAGES = {
    MatchingIssueKind.SIZE_MISMATCH: "Left and right items must have the same count ({left} vs {right})",
    MatchingIssueKind.INDEX_OUT_OF_RANGE: "Match refers to {side} item {index}, which does not exist",
    MatchingIssueKind.DUPLICATE_LEFT: "Left item {index} is matched more than once",
    MatchingIssueKind.DUPLICATE_RIGHT: "Right item {index} is matched more than once",
    MatchingIssueKind.LEFT_UNMATCHED: "Left item {index} is not matched",
    MatchingIssueKind.RIGHT_UNMATCHED: "Right item {index} is not matched",
}


@dataclass(frozen=True)
class MatchingIssue:
    """The first problem found in a pair set"""

    kind: MatchingIssueKind
    side: Optional[str] = None
    index: Optional[int] = None
    left_count: int = 0
    right_count: int = 0

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind].format(
            side=self.side,
            index=self.index,
            left=self.left_count,
            right=self.right_count,
        )


def find_matching_issue(
    left_count: int, right_count: int, pairs: Iterable[Tuple[int, int]]
) -> Optional[MatchingIssue]:
    """
    Check whether ``pairs`` is a complete, conflict-free matching.

    Args:
        left_count: Number of items in the left collection
        right_count: Number of items in the right collection
        pairs: (left_index, right_index) tuples, 0-based

    Returns:
        The first issue found, or None when the matching is complete
    """
    counts = {"left_count": left_count, "right_count": right_count}

    if left_count != right_count:
        return MatchingIssue(MatchingIssueKind.SIZE_MISMATCH, **counts)

    left_seen: List[bool] = [False] * left_count
    right_seen: List[bool] = [False] * right_count

    for left_index, right_index in pairs:
        if not 0 <= left_index < left_count:
            return MatchingIssue(
                MatchingIssueKind.INDEX_OUT_OF_RANGE, "left", left_index, **counts
            )
        if not 0 <= right_index < right_count:
            return MatchingIssue(
                MatchingIssueKind.INDEX_OUT_OF_RANGE, "right", right_index, **counts
            )
        if left_seen[left_index]:
            return MatchingIssue(
                MatchingIssueKind.DUPLICATE_LEFT, "left", left_index, **counts
            )
        if right_seen[right_index]:
            return MatchingIssue(
                MatchingIssueKind.DUPLICATE_RIGHT, "right", right_index, **counts
            )
        left_seen[left_index] = True
        right_seen[right_index] = True

    for index, seen in enumerate(left_seen):
        if not seen:
            return MatchingIssue(MatchingIssueKind.LEFT_UNMATCHED, "left", index, **counts)
    for index, seen in enumerate(right_seen):
        if not seen:
            return MatchingIssue(
                MatchingIssueKind.RIGHT_UNMATCHED, "right", index, **counts
            )

    return None


def is_complete_matching(
    left_count: int, right_count: int, pairs: Iterable[Tuple[int, int]]
) -> bool:
    """Predicate form of find_matching_issue."""
    return find_matching_issue(left_count, right_count, pairs) is None


def validate_matching(
    left_count: int,
    right_count: int,
    pairs: Iterable[Tuple[int, int]],
    round_index: Optional[int] = None,
) -> None:
    """
    Raise a ValidationError if ``pairs`` is not a complete matching.

    The error rule is ``matching.<kind>``, for example ``matching.left_unmatched``.
    """
    issue = find_matching_issue(left_count, right_count, pairs)
    if issue is None:
        return
    raise ValidationError(
        issue.message,
        rule=f"matching.{issue.kind.value}",
        round_index=round_index,
        side=issue.side,
        choice_index=issue.index,
    )
