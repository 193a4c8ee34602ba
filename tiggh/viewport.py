"""Visible-range computation shared by every scrollable list, diff and detail pane."""


def visible_range(total: int, cursor: int, rows: int) -> tuple[int, int]:
    """Return the half-open range ``[start, end)`` of items to draw.

    When everything fits, the whole list is shown. Otherwise the window is
    ``rows`` wide, centred on ``cursor`` where possible and clamped to the
    list bounds, so the cursor row is always visible.

    Args:
        total: Number of items in the list
        cursor: Index of the selected item (ignored when total is 0)
        rows: Number of rows available on screen

    Returns:
        Tuple of (start, end) indices
    """
    rows = max(rows, 1)
    if total <= rows:
        return 0, max(total, 0)

    cursor = min(max(cursor, 0), total - 1)
    start = cursor - rows // 2
    if start < 0:
        start = 0
    end = start + rows
    if end > total:
        end = total
        start = end - rows
    return start, end
