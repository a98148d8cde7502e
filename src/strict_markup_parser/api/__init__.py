"""Public API for strict markup parsing.

Key Components:
    parse / parse_fragment: Level 1 functions returning a ParseResult
    StrictMarkupParser: Level 2 reusable, configured parser
    ParseResult: Parsed nodes or the error that stopped parsing
    adapters: Conversions to lxml, BeautifulSoup and pandas
"""

from .parser import ParseResult, StrictMarkupParser, parse, parse_fragment

__all__ = [
    "ParseResult",
    "StrictMarkupParser",
    "parse",
    "parse_fragment",
]
