"""Strict Markup Parser.

A small recursive-descent parser turning a simplified HTML-like markup into an
immutable document tree, with typed errors for every malformed input.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_fragment()
- Level 2: Configured parser - StrictMarkupParser class
- Level 3: Core engine - Parser and Cursor, raising ParseError directly
"""

__version__ = "0.1.0"
__author__ = "Strict Markup Parser Team"

# Progressive API disclosure - Level 1 and Level 2
from .api import ParseResult, StrictMarkupParser, parse, parse_fragment

# Level 3: core engine and error taxonomy
from .parsing import Parser, ParseError

# Configuration classes for advanced usage
from .shared.config import ParserConfig

# Document tree
from .tree import Node, Tag, TagNode, Text, debug_repr, to_markup

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_fragment",

    # Level 2: Advanced parser class
    "StrictMarkupParser",
    "ParseResult",

    # Level 3: Core engine
    "Parser",
    "ParseError",

    # Configuration
    "ParserConfig",

    # Document tree
    "Node",
    "Tag",
    "TagNode",
    "Text",
    "debug_repr",
    "to_markup",
]
