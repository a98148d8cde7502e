"""Tests for the recursive-descent parser."""

import sys

import pytest

from strict_markup_parser.parsing import (
    EmptyTagName,
    InputTooLarge,
    InvalidEncoding,
    MalformedAttribute,
    MaxDepthExceeded,
    MismatchedClosingTag,
    ParseError,
    Parser,
    StrayClosingTag,
    UnexpectedEOF,
    UnexpectedToken,
)
from strict_markup_parser.shared import ParserConfig
from strict_markup_parser.shared.config import DEFAULT_MAX_DEPTH, MAX_SUPPORTED_DEPTH
from strict_markup_parser.tree import (
    Tag,
    TagNode,
    Text,
    count_nodes,
    debug_repr,
    from_dict,
    iter_nodes,
    to_dict,
    to_markup,
)


class TestTextParsing:
    """Test inputs without a leading tag."""

    def test_plain_text(self) -> None:
        """Test input without '<' becomes a single text node."""
        node = Parser().parse("abcd")

        assert node == Text("abcd")
        assert debug_repr(node) == "Text('abcd')"

    def test_text_stops_at_first_tag(self) -> None:
        """Test text runs up to the next '<' and leaves the rest unread."""
        parser = Parser()

        node = parser.parse("hello <b>world</b>")

        assert node == Text("hello ")
        assert parser.position == 6

    def test_empty_input_is_empty_text(self) -> None:
        """Test empty input parses to an empty text node."""
        assert Parser().parse("") == Text("")

    def test_bytes_input(self) -> None:
        """Test bytes and bytearray inputs are accepted."""
        assert Parser().parse(b"abc") == Text("abc")
        assert Parser().parse(bytearray(b"abc")) == Text("abc")

    def test_unsupported_input_type_raises_type_error(self) -> None:
        """Test non-bytes, non-str input is rejected."""
        with pytest.raises(TypeError, match="Expected str, bytes"):
            Parser().parse(12345)  # type: ignore[arg-type]


class TestTagParsing:
    """Test tag headers and children."""

    def test_empty_tag(self) -> None:
        """Test the simplest element."""
        node = Parser().parse("<a></a>")

        assert node == Tag(TagNode("a", {}, ()))
        assert debug_repr(node) == "Tag(name='a', attributes={}, children=[])"

    def test_attributes_in_sorted_order(self) -> None:
        """Test attributes render in sorted-key order regardless of source order."""
        node = Parser().parse('<a id="something" class="something"></a>')

        assert node.attributes == {"class": "something", "id": "something"}
        assert debug_repr(node) == (
            "Tag(name='a', attributes={'class': 'something', 'id': 'something'}, "
            "children=[])"
        )

    def test_nested_children(self) -> None:
        """Test sibling elements are collected in document order."""
        node = Parser().parse("<html><div></div><a></a></html>")

        assert node == Tag.create(
            "html", {}, [Tag.create("div"), Tag.create("a")]
        )

    def test_mixed_text_and_tags(self) -> None:
        """Test text and tag children interleave in order."""
        node = Parser().parse("<p>Hello <b>bold</b> world</p>")

        assert node.children == (
            Text("Hello "),
            Tag.create("b", {}, [Text("bold")]),
            Text(" world"),
        )

    def test_spaces_around_attribute_delimiters(self) -> None:
        """Test spaces are allowed around '=' and between attributes."""
        node = Parser().parse('<a  href = "x"   title="y" ></a>')

        assert node.attributes == {"href": "x", "title": "y"}

    def test_duplicate_attribute_last_wins(self) -> None:
        """Test the last value of a repeated key is kept."""
        node = Parser().parse('<a id="1" id="2"></a>')

        assert node.attributes == {"id": "2"}

    def test_attribute_value_passes_through_opaquely(self) -> None:
        """Test values keep '<', '>', '=' and entity text unchanged."""
        node = Parser().parse('<a title="a<b>=c &amp;"></a>')

        assert node.attributes["title"] == "a<b>=c &amp;"

    def test_empty_attribute_value(self) -> None:
        """Test an empty quoted value is allowed."""
        assert Parser().parse('<a alt=""></a>').attributes == {"alt": ""}

    def test_closing_tag_with_trailing_spaces(self) -> None:
        """Test spaces before '>' in a closing tag are skipped."""
        assert Parser().parse("<a></a  >") == Tag.create("a")

    def test_unclosed_element_ends_at_input_end(self) -> None:
        """Test end of input closes open elements by default."""
        node = Parser().parse("<ul><li>one")

        assert node == Tag.create("ul", {}, [Tag.create("li", {}, [Text("one")])])

    def test_first_node_only(self) -> None:
        """Test only the first top-level node is parsed."""
        parser = Parser()

        node = parser.parse("<a></a><b></b>")

        assert node == Tag.create("a")
        assert parser.position == 7
        assert parser.input_length == 14

    def test_utf8_text_and_attributes(self) -> None:
        """Test non-ASCII text and values are decoded."""
        node = Parser().parse('<p lang="日本">こんにちは</p>')

        assert node.attributes == {"lang": "日本"}
        assert node.children == (Text("こんにちは"),)

    def test_counts_nodes_and_depth(self) -> None:
        """Test the parser reports nodes created and depth reached."""
        parser = Parser()

        parser.parse("<a><b><c>x</c></b><d></d></a>")

        assert parser.nodes_created == 5
        assert parser.max_depth_reached == 3


class TestFragmentParsing:
    """Test parsing several top-level siblings."""

    def test_multiple_roots(self) -> None:
        """Test all top-level nodes are returned without a wrapping root."""
        nodes = Parser().parse_fragment("<a></a>text<b></b>")

        assert nodes == [Tag.create("a"), Text("text"), Tag.create("b")]

    def test_empty_fragment(self) -> None:
        """Test empty input yields no nodes."""
        assert Parser().parse_fragment("") == []

    def test_stray_closing_tag(self) -> None:
        """Test a closing tag with nothing open raises StrayClosingTag."""
        with pytest.raises(StrayClosingTag) as exc_info:
            Parser().parse_fragment("<a></a></b>")

        assert exc_info.value.name == "b"
        assert exc_info.value.position == 7

    def test_stray_closing_tag_on_first_node(self) -> None:
        """Test parse also rejects input starting with a closing tag."""
        with pytest.raises(StrayClosingTag):
            Parser().parse("</a>")


class TestClosingTagPolicy:
    """Test closing-tag name verification."""

    def test_mismatched_closing_tag_raises(self) -> None:
        """Test a closing tag naming another element is an error by default."""
        with pytest.raises(MismatchedClosingTag) as exc_info:
            Parser().parse("<a></b>")

        assert exc_info.value.opened == "a"
        assert exc_info.value.closed == "b"
        assert exc_info.value.position == 3

    def test_nested_mismatch_reports_inner_element(self) -> None:
        """Test the innermost open element is the one checked."""
        with pytest.raises(MismatchedClosingTag) as exc_info:
            Parser().parse("<a><b></a></b>")

        assert (exc_info.value.opened, exc_info.value.closed) == ("b", "a")

    def test_lenient_config_accepts_mismatch(self) -> None:
        """Test mismatched names are accepted and ignored when checking is off."""
        parser = Parser(ParserConfig.lenient())

        assert parser.parse("<a></b>") == Tag.create("a")

    def test_strict_config_requires_closing_tags(self) -> None:
        """Test strict config turns an unclosed element into UnexpectedEOF."""
        with pytest.raises(UnexpectedEOF):
            Parser(ParserConfig.strict()).parse("<a><b></b>")


class TestMalformedInput:
    """Test every malformed input yields a typed error."""

    @pytest.mark.parametrize(
        "source",
        [
            '<a id="x>',
            '<a id="x',
            "<a id>",
            '<a id "x"></a>',
            "<a id=x></a>",
            '<a ="x"></a>',
        ],
    )
    def test_malformed_attributes(self, source: str) -> None:
        """Test broken attribute syntax raises MalformedAttribute."""
        with pytest.raises(MalformedAttribute):
            Parser().parse(source)

    def test_unterminated_value_reports_value_start(self) -> None:
        """Test the error position points at the unterminated value."""
        with pytest.raises(MalformedAttribute) as exc_info:
            Parser().parse('<a id="x>')

        assert exc_info.value.position == 7
        assert "unterminated" in exc_info.value.reason

    @pytest.mark.parametrize("source", ["<", "<a", "<a ", '<a id="x"', "<a id=", "<a></a"])
    def test_truncated_input(self, source: str) -> None:
        """Test input ending inside a header or closing tag raises UnexpectedEOF."""
        with pytest.raises(UnexpectedEOF):
            Parser().parse(source)

    @pytest.mark.parametrize("source", ["<></>", "< a></a>"])
    def test_empty_tag_name(self, source: str) -> None:
        """Test a header without a name raises EmptyTagName."""
        with pytest.raises(EmptyTagName) as exc_info:
            Parser().parse(source)

        assert exc_info.value.position == 0

    def test_garbage_in_closing_tag(self) -> None:
        """Test extra content in a closing tag raises UnexpectedToken."""
        with pytest.raises(UnexpectedToken) as exc_info:
            Parser().parse("<a></a b>")

        assert exc_info.value.expected == ord(">")
        assert exc_info.value.found == ord("b")

    def test_invalid_utf8(self) -> None:
        """Test undecodable text raises InvalidEncoding."""
        with pytest.raises(InvalidEncoding):
            Parser().parse(b"<a>\xff</a>")

    def test_all_errors_share_base_class(self) -> None:
        """Test callers can catch every failure as ParseError."""
        for source in ['<a id="x>', "<a></b>", "<", "<>"]:
            with pytest.raises(ParseError):
                Parser().parse(source)


class TestLimits:
    """Test resource limits."""

    def test_depth_within_limit(self) -> None:
        """Test nesting up to max_depth is accepted."""
        config = ParserConfig().override(limits__max_depth=3)

        node = Parser(config).parse("<a><b><c></c></b></a>")

        assert node.node.depth == 3

    def test_depth_over_limit(self) -> None:
        """Test nesting beyond max_depth raises MaxDepthExceeded."""
        config = ParserConfig().override(limits__max_depth=2)

        with pytest.raises(MaxDepthExceeded) as exc_info:
            Parser(config).parse("<a><b><c></c></b></a>")

        assert exc_info.value.depth == 3
        assert exc_info.value.position == 6

    def test_adversarial_nesting_does_not_overflow_stack(self) -> None:
        """Test deeply nested input fails cleanly instead of exhausting the stack."""
        source = "<a>" * (sys.getrecursionlimit() * 2)

        with pytest.raises(MaxDepthExceeded):
            Parser().parse(source)

    def test_default_depth_limit_is_usable(self) -> None:
        """Test nesting at the default limit parses."""
        depth = ParserConfig().limits.max_depth
        source = "<a>" * depth + "</a>" * depth

        node = Parser().parse(source)

        assert node.node.depth == depth

    def test_input_size_limit(self) -> None:
        """Test oversized input is rejected before parsing."""
        config = ParserConfig().override(limits__max_input_size_bytes=4)

        with pytest.raises(InputTooLarge) as exc_info:
            Parser(config).parse("<a></a>")

        assert exc_info.value.size == 7
        assert exc_info.value.limit == 4


class TestWhitespacePolicy:
    """Test whitespace-only text handling."""

    def test_whitespace_text_kept_by_default(self) -> None:
        """Test whitespace between tags is materialized as text."""
        node = Parser().parse("<a> <b></b>\n</a>")

        assert node.children == (Text(" "), Tag.create("b"), Text("\n"))

    def test_whitespace_text_dropped(self) -> None:
        """Test whitespace-only text is elided when configured."""
        config = ParserConfig().override(grammar__drop_whitespace_text=True)

        node = Parser(config).parse("<a> <b> x </b>\n</a>")

        assert node.children == (Tag.create("b", {}, [Text(" x ")]),)


class TestRoundTrip:
    """Test canonical serialization parses back to an equal tree."""

    @pytest.mark.parametrize(
        "source",
        [
            '<a id="something" class="something"></a>',
            "<html><div></div><a></a></html>",
            '<html lang="en"><body><p>Hello <b>bold</b> world</p><br></br></body></html>',
            '<x  z="1"   y = "2" >text</x >',
            "<a=b></a=b>",
            '<a"b></a"b>',
            '<p x"y="1"></p>',
        ],
    )
    def test_round_trip(self, source: str) -> None:
        """Test parse(to_markup(parse(s))) equals parse(s)."""
        tree = Parser().parse(source)

        assert Parser().parse(to_markup(tree)) == tree

    def test_parser_instance_is_reusable(self) -> None:
        """Test each call starts from a fresh cursor."""
        parser = Parser()

        first = parser.parse("<a></a>")
        second = parser.parse("<b>x</b>")

        assert first == Tag.create("a")
        assert second == Tag.create("b", {}, [Text("x")])
        assert parser.position == 8

    def test_rejected_input_type_clears_previous_state(self) -> None:
        """Test a call that fails on its input type reports no position or length."""
        parser = Parser()
        parser.parse("<a>text</a>")

        with pytest.raises(TypeError):
            parser.parse(None)  # type: ignore[arg-type]

        assert parser.position == 0
        assert parser.input_length == 0
        assert parser.nodes_created == 0
        assert parser.max_depth_reached == 0


class TestDeepTrees:
    """Test trees nested up to the configured depth limit."""

    @pytest.fixture(params=[DEFAULT_MAX_DEPTH, MAX_SUPPORTED_DEPTH])
    def deep(self, request) -> tuple:
        depth = request.param
        config = ParserConfig().override(limits__max_depth=depth)
        source = "<a>" * depth + "x" + "</a>" * depth
        return depth, config, source, Parser(config).parse(source)

    def test_parses_to_full_depth(self, deep) -> None:
        """Test the whole nesting is materialized."""
        depth, _, _, tree = deep

        assert tree.node.depth == depth
        assert count_nodes(tree) == depth + 1
        assert len(list(iter_nodes(tree))) == depth + 1
        assert tree.node.text_content == "x"

    def test_equality_and_hash(self, deep) -> None:
        """Test two parses of the same deep input are equal and hash alike."""
        _, config, source, tree = deep

        again = Parser(config).parse(source)

        assert tree == again
        assert hash(tree) == hash(again)
        assert tree != Parser(config).parse(source.replace("x", "y"))

    def test_markup_round_trip(self, deep) -> None:
        """Test canonical markup of a deep tree parses back to an equal tree."""
        _, config, source, tree = deep

        markup = to_markup(tree)

        assert markup == source
        assert Parser(config).parse(markup) == tree

    def test_debug_repr(self, deep) -> None:
        """Test the debug form covers every level."""
        depth, _, _, tree = deep

        rendered = debug_repr(tree)

        assert rendered.startswith("Tag(name='a', attributes={}, children=[Tag(")
        assert rendered.count("Tag(name='a'") == depth
        assert rendered.endswith("Text('x')" + "])" * depth)

    def test_dict_round_trip(self, deep) -> None:
        """Test the dict form rebuilds an equal tree."""
        _, _, _, tree = deep

        assert from_dict(to_dict(tree)) == tree
