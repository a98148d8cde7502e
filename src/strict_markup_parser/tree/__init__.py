"""Document tree for strict markup parsing.

Key Components:
    Node: Closed union of Text and Tag
    Text: Character content between tags
    Tag: Element node wrapping a TagNode
    TagNode: Element name, attributes and ordered children
    debug_repr / to_markup / to_dict / to_json: Deterministic renderings
"""

from .nodes import (
    Node,
    Tag,
    TagNode,
    Text,
    count_nodes,
    iter_nodes,
)
from .serializer import (
    SerializationError,
    debug_repr,
    from_dict,
    to_dict,
    to_json,
    to_markup,
)

__all__ = [
    "Node",
    "Tag",
    "TagNode",
    "Text",
    "count_nodes",
    "iter_nodes",
    "SerializationError",
    "debug_repr",
    "from_dict",
    "to_dict",
    "to_json",
    "to_markup",
]
