"""
Coarse deterministic placement for freshly converted nodes.

The editing surface runs its own layout pass right after load, so this only
has to keep nodes from piling up on one point.
"""

from collections import defaultdict
from typing import Dict, Tuple

from schemas.workflow import EditorNodeType, Position

COLUMN_WIDTH = 300

START_COLUMN_X = 100
START_TOP_Y = 50
START_ROW_HEIGHT = 100

# editor type -> (x offset, top y, row height, row count)
GRID_SLOTS: Dict[str, Tuple[int, int, int, int]] = {
    EditorNodeType.INVOKE.value: (200, 200, 150, 3),
    # Conditions sit just left of the actions they guard.
    EditorNodeType.CONDITION.value: (50, 200, 150, 3),
}
DEFAULT_SLOT = (150, 150, 120, 4)


def assign_position(editor_type: str, order: int, index: int) -> Position:
    """
    Position for the `index`-th node of `editor_type` with the given order.

    Start nodes stack in a fixed left column. Everything else goes on a grid:
    one column per order, rows cycling through a small fixed set.
    """
    if editor_type == EditorNodeType.START.value:
        return Position(x=START_COLUMN_X, y=START_TOP_Y + index * START_ROW_HEIGHT)

    x_offset, top_y, row_height, row_count = GRID_SLOTS.get(editor_type, DEFAULT_SLOT)
    return Position(
        x=x_offset + order * COLUMN_WIDTH,
        y=top_y + (index % row_count) * row_height,
    )


class LayoutAssigner:
    """Hands out stable per-(type, order) indexes in conversion order."""

    def __init__(self):
        self._counters: Dict[Tuple[str, int], int] = defaultdict(int)

    def place(self, editor_type: str, order: int) -> Position:
        key = (editor_type, order)
        index = self._counters[key]
        self._counters[key] += 1
        return assign_position(editor_type, order, index)
