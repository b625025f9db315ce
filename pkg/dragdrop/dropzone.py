"""
Drop placement: where a dropped card lands among its new siblings.

Rule: insert before the nearest card whose vertical center is below the
pointer. If the pointer is below every card, append to the end.
"""
from typing import Optional, Sequence

from .schema import CardSlot


def compute_insertion_index(
    cards: Sequence[CardSlot],
    pointer_y: float,
    exclude: Optional[int] = None,
) -> int:
    """
    Compute the insertion index for a pointer at pointer_y.

    Args:
        cards: Cards of the target container, top to bottom.
        pointer_y: Pointer Y in the same coordinates as the card centers.
        exclude: Task id to skip (the card being dragged). The returned
            index is then relative to the list without that card.

    Returns:
        Index in [0, len(considered cards)]. Ties go to the first card
        scanned, so identical input always gives the same index.
    """
    considered = [card for card in cards if card.task_id != exclude]

    best_index = len(considered)
    best_offset = float("-inf")
    for index, card in enumerate(considered):
        offset = pointer_y - card.vertical_center
        # Only cards below the pointer; keep the one closest to it
        if offset < 0 and offset > best_offset:
            best_offset = offset
            best_index = index
    return best_index
