from __future__ import annotations

from bs4 import NavigableString, Tag

from hateblock.dom import parent_element, text_length

# Elements holding this much text are already too broad to climb from.
MAX_CONTAINER_TEXT = 500

# A parent with more than this multiple of the current element's text is
# assumed to aggregate several unrelated content units.
PARENT_GROWTH_LIMIT = 1.5


def resolve_container(text_node: NavigableString, root: Tag) -> Tag | None:
    """Find the smallest ancestor of *text_node* that looks like one post/comment.

    Starts at the node's parent element and climbs while the current
    element is small and its parent is not substantially larger.  Never
    climbs onto *root* (the document body).  Returns ``None`` when the
    node has no parent element.
    """
    element = parent_element(text_node)
    if element is None:
        return None

    length = text_length(element)
    while element is not root and length < MAX_CONTAINER_TEXT:
        parent = parent_element(element)
        if parent is None or parent is root:
            break
        parent_length = text_length(parent)
        if parent_length > length * PARENT_GROWTH_LIMIT:
            break
        element, length = parent, parent_length
    return element
