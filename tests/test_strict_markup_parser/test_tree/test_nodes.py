"""Tests for the document tree node model."""

from dataclasses import FrozenInstanceError

import pytest

from strict_markup_parser.tree import Tag, TagNode, Text, count_nodes, iter_nodes


@pytest.fixture
def document() -> Tag:
    """A small tree: <html><body><p id="a">Hi <b>there</b></p><p id="b">x</p></body></html>."""
    return Tag.create("html", {}, [
        Tag.create("body", {}, [
            Tag.create("p", {"id": "a"}, [
                Text("Hi "),
                Tag.create("b", {}, [Text("there")]),
            ]),
            Tag.create("p", {"id": "b", "class": "note"}, [Text("x")]),
        ]),
    ])


class TestText:
    """Test Text node behaviour."""

    def test_text_equality(self) -> None:
        """Test text nodes compare by content."""
        assert Text("a") == Text("a")
        assert Text("a") != Text("b")

    def test_text_is_immutable(self) -> None:
        """Test text content cannot be reassigned."""
        text = Text("a")

        with pytest.raises(FrozenInstanceError):
            text.content = "b"  # type: ignore[misc]

    def test_non_string_content_raises_error(self) -> None:
        """Test content must be a string."""
        with pytest.raises(TypeError, match="must be a string"):
            Text(b"bytes")  # type: ignore[arg-type]

    @pytest.mark.parametrize("content,expected", [
        ("", True), (" \n\t", True), (" x ", False),
    ])
    def test_is_whitespace(self, content: str, expected: bool) -> None:
        """Test whitespace-only detection."""
        assert Text(content).is_whitespace is expected


class TestTagNode:
    """Test TagNode validation and ownership."""

    def test_empty_name_raises_error(self) -> None:
        """Test a tag must have a non-empty name."""
        with pytest.raises(ValueError, match="Tag name cannot be empty"):
            TagNode("")

    def test_non_string_attribute_raises_error(self) -> None:
        """Test attribute names and values must be strings."""
        with pytest.raises(TypeError, match="must be strings"):
            TagNode("a", {"id": 1})  # type: ignore[dict-item]

    def test_invalid_child_raises_error(self) -> None:
        """Test children must be Text or Tag nodes."""
        with pytest.raises(TypeError, match="Children must be Text or Tag"):
            TagNode("a", {}, ("raw string",))  # type: ignore[arg-type]

    def test_attributes_are_copied(self) -> None:
        """Test the tag owns its attribute mapping."""
        attributes = {"id": "x"}

        tag = TagNode("a", attributes)
        attributes["id"] = "changed"

        assert tag.attributes == {"id": "x"}

    def test_attributes_sorted_by_key(self) -> None:
        """Test attribute iteration follows sorted key order."""
        tag = TagNode("a", {"z": "1", "a": "2", "m": "3"})

        assert list(tag.attributes) == ["a", "m", "z"]

    def test_attributes_are_read_only(self) -> None:
        """Test attributes cannot be changed after construction."""
        tag = Tag.create("a", {"id": "x"})

        with pytest.raises(TypeError):
            tag.attributes["id"] = "changed"  # type: ignore[index]
        with pytest.raises(TypeError):
            tag.node.attributes["new"] = "y"  # type: ignore[index]

        assert tag.attributes == {"id": "x"}
        assert hash(tag) == hash(Tag.create("a", {"id": "x"}))

    def test_children_stored_as_tuple(self) -> None:
        """Test children are frozen into a tuple."""
        children = [Text("x")]

        tag = TagNode("a", {}, children)  # type: ignore[arg-type]
        children.append(Text("y"))

        assert tag.children == (Text("x"),)

    def test_equality_ignores_attribute_source_order(self) -> None:
        """Test equal attribute sets compare equal."""
        assert TagNode("a", {"x": "1", "y": "2"}) == TagNode("a", {"y": "2", "x": "1"})

    def test_tag_is_hashable(self) -> None:
        """Test frozen nodes can be used in sets."""
        nodes = {Tag.create("a", {"id": "1"}), Tag.create("a", {"id": "1"})}

        assert len(nodes) == 1


class TestTag:
    """Test the Tag wrapper."""

    def test_tag_wraps_tag_node(self) -> None:
        """Test Tag exposes the wrapped TagNode's fields."""
        tag = Tag.create("a", {"href": "/"}, [Text("home")])

        assert isinstance(tag.node, TagNode)
        assert tag.name == "a"
        assert tag.attributes == {"href": "/"}
        assert tag.children == (Text("home"),)

    def test_tag_requires_tag_node(self) -> None:
        """Test Tag rejects anything but a TagNode."""
        with pytest.raises(TypeError, match="must wrap a TagNode"):
            Tag("a")  # type: ignore[arg-type]


class TestNavigation:
    """Test read-only navigation helpers."""

    def test_get_and_has_attribute(self, document: Tag) -> None:
        """Test attribute lookup with default."""
        p = document.node.find("p")

        assert p is not None
        assert p.node.get_attribute("id") == "a"
        assert p.node.get_attribute("missing", "default") == "default"
        assert p.node.has_attribute("id")
        assert not p.node.has_attribute("class")

    def test_find_returns_first_in_document_order(self, document: Tag) -> None:
        """Test find returns the first matching descendant."""
        assert document.node.find("p").attributes["id"] == "a"
        assert document.node.find("table") is None

    def test_find_all(self, document: Tag) -> None:
        """Test find_all returns every matching descendant."""
        assert [p.attributes["id"] for p in document.node.find_all("p")] == ["a", "b"]

    def test_find_by_attribute(self, document: Tag) -> None:
        """Test lookup by attribute name and value."""
        assert len(document.node.find_by_attribute("id")) == 2
        assert [t.name for t in document.node.find_by_attribute("class", "note")] == ["p"]

    def test_iter_tags_document_order(self, document: Tag) -> None:
        """Test descendant tags are yielded depth-first."""
        assert [t.name for t in document.node.iter_tags()] == ["body", "p", "b", "p"]

    def test_text_content(self, document: Tag) -> None:
        """Test descendant text is concatenated in order."""
        assert document.node.text_content == "Hi therex"

    def test_counts(self, document: Tag) -> None:
        """Test element count, depth and total node count."""
        assert document.node.element_count == 5
        assert document.node.depth == 4
        assert count_nodes(document) == 8

    def test_iter_nodes_includes_text(self, document: Tag) -> None:
        """Test iter_nodes yields tags and text in document order."""
        kinds = [type(node).__name__ for node in iter_nodes(document)]

        assert kinds == ["Tag", "Tag", "Tag", "Text", "Tag", "Text", "Tag", "Text"]

    def test_iter_nodes_rejects_unknown_node(self) -> None:
        """Test consumers refuse anything outside the closed Text/Tag union."""
        with pytest.raises(TypeError, match="Expected a Text or Tag node"):
            list(iter_nodes("not a node"))  # type: ignore[arg-type]
