"""Integration adapters for popular document libraries.

Adapters convert a parsed tree to and from the native objects of lxml,
BeautifulSoup and pandas. Conversions never raise for bad data: failures come
back as a :class:`ConversionResult` with ``success=False`` and an ERROR
diagnostic.
"""

import importlib.util
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type, Union

from strict_markup_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from strict_markup_parser.tree import Node, Tag, Text, to_markup

from .parser import ParseResult

# Keep only the most recent conversion timings per adapter
MAX_RECORDED_CONVERSIONS = 1000

# Exceptions raised by target libraries for data they cannot represent
_CONVERSION_ERRORS = (ValueError, TypeError, KeyError)

ConvertibleSource = Union[ParseResult, Node]


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # Element tree libraries (lxml, BeautifulSoup)
    DATA_FRAME = auto()      # Tabular libraries (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    supported_versions: List[str]
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class AdapterPerformanceProfiler:
    """Thread-safe record of conversion timings per adapter."""

    def __init__(self) -> None:
        self._metrics: Dict[str, List[float]] = {}
        self._lock = threading.RLock()

    def record_conversion(self, adapter_name: str, conversion_time_ms: float) -> None:
        """Record conversion performance."""
        with self._lock:
            times = self._metrics.setdefault(adapter_name, [])
            times.append(conversion_time_ms)
            if len(times) > MAX_RECORDED_CONVERSIONS:
                del times[:-MAX_RECORDED_CONVERSIONS]

    def get_statistics(self, adapter_name: str) -> Dict[str, float]:
        """Get performance statistics for an adapter."""
        with self._lock:
            times = self._metrics.get(adapter_name)
            if not times:
                return {}
            return {
                "count": len(times),
                "average_ms": sum(times) / len(times),
                "min_ms": min(times),
                "max_ms": max(times),
                "total_ms": sum(times),
            }

    def get_all_statistics(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for all adapters."""
        with self._lock:
            return {name: self.get_statistics(name) for name in self._metrics}


def _root_tag(source: ConvertibleSource) -> Tag:
    """Extract the tag to convert from a parse result or a node."""
    if isinstance(source, ParseResult):
        if not source.success or source.node is None:
            raise ValueError("ParseResult is not successful or has no node")
        source = source.node
    if isinstance(source, Text):
        raise ValueError("A text node cannot be converted to a document root")
    if not isinstance(source, Tag):
        raise TypeError(f"Expected ParseResult or Tag, got {type(source).__name__}")
    return source


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Subclasses implement bidirectional conversion between parsed trees and a
    target library's representation.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._profiler = AdapterPerformanceProfiler()

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _convert_to(self, tag: Tag) -> Any:
        """Build the target representation of ``tag``."""

    @abstractmethod
    def _convert_from(self, target_data: Any) -> Tag:
        """Build a tag from the target representation."""

    def _describe(self, converted: Any) -> Dict[str, Any]:
        """Metadata attached to a successful ``to_target`` conversion."""
        return {}

    def to_target(self, source: ConvertibleSource) -> ConversionResult:
        """Convert a parse result or tag to the target format."""
        start_time = time.time()
        try:
            converted = self._convert_to(_root_tag(source))
        except _CONVERSION_ERRORS as e:
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                source,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=source,
            conversion_time_ms=processing_time,
            metadata=self._describe(converted),
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target-format data to a ParseResult holding one tag."""
        start_time = time.time()
        try:
            tag = self._convert_from(target_data)
        except _CONVERSION_ERRORS as e:
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        result = ParseResult(nodes=[tag], correlation_id=self.correlation_id)
        result.performance.processing_time_ms = processing_time
        result.performance.nodes_created = result.node_count
        return ConversionResult(
            success=True,
            converted_data=result,
            original_data=target_data,
            conversion_time_ms=processing_time,
            metadata={"root_name": tag.name, "element_count": tag.node.element_count},
        )

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for this adapter."""
        return self._profiler.get_all_statistics()

    def _record_performance(self, operation_time_ms: float) -> None:
        self._profiler.record_conversion(self.metadata.name, operation_time_ms)

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        self._logger.warning(error_message, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class AdapterRegistry:
    """Registry of adapter classes keyed by adapter name."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            metadata = adapter_class().metadata
            self._adapters[metadata.name] = adapter_class

    def unregister(self, adapter_name: str) -> bool:
        """Remove an adapter; returns whether it was registered."""
        with self._lock:
            return self._adapters.pop(adapter_name, None) is not None

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get a new adapter instance, or None if unknown or unavailable."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        adapter = adapter_class(correlation_id)
        return adapter if adapter.is_available() else None

    def list_adapters(self) -> List[AdapterMetadata]:
        """Metadata of all registered adapters whose library is importable."""
        with self._lock:
            adapter_classes = list(self._adapters.values())
        adapters = [adapter_class() for adapter_class in adapter_classes]
        return [adapter.metadata for adapter in adapters if adapter.is_available()]

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Names of registered adapters of the given type."""
        return [
            metadata.name for metadata in self.list_adapters()
            if metadata.adapter_type == adapter_type
        ]


_global_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an adapter class with the global registry."""
    _global_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get an adapter instance from the global registry."""
    return _global_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List metadata for all available adapters in the global registry."""
    return _global_registry.list_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """List names of available adapters of a given type."""
    return _global_registry.get_adapters_by_type(adapter_type)


def _library_available(module_name: str) -> bool:
    return importlib.util.find_spec(module_name) is not None


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with ``lxml.etree`` elements.

    Text children map onto lxml's ``text`` and ``tail`` slots: text before
    the first child element becomes ``element.text`` and text after a child
    becomes that child's ``tail``.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between parsed trees and lxml.etree"
        )

    def is_available(self) -> bool:
        return _library_available("lxml")

    def _convert_to(self, tag: Tag) -> Any:
        from lxml import etree

        return self._build_element(tag, etree)

    def _build_element(self, tag: Tag, etree: Any) -> Any:
        element = etree.Element(tag.name, attrib=dict(tag.attributes))
        last_child = None
        for child in tag.children:
            if isinstance(child, Text):
                if last_child is None:
                    element.text = (element.text or "") + child.content
                else:
                    last_child.tail = (last_child.tail or "") + child.content
            else:
                last_child = self._build_element(child, etree)
                element.append(last_child)
        return element

    def _describe(self, converted: Any) -> Dict[str, Any]:
        from lxml import etree

        return {
            "lxml_version": etree.LXML_VERSION,
            "element_count": sum(1 for _ in converted.iter()),
        }

    def _convert_from(self, target_data: Any) -> Tag:
        from lxml import etree

        if not etree.iselement(target_data):
            raise TypeError("Target data is not an lxml element")
        if not isinstance(target_data.tag, str):
            raise ValueError("Root must be an element, not a comment or instruction")
        return self._element_to_tag(target_data)

    def _element_to_tag(self, element: Any) -> Tag:
        children: List[Node] = []
        if element.text:
            children.append(Text(element.text))
        for child in element:
            # Comments and processing instructions have a non-string tag
            if isinstance(child.tag, str):
                children.append(self._element_to_tag(child))
            if child.tail:
                children.append(Text(child.tail))
        return Tag.create(element.tag, dict(element.attrib), children)


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with BeautifulSoup documents."""

    parser_features = "html.parser"

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="beautifulsoup",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="bs4",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between parsed trees and BeautifulSoup"
        )

    def is_available(self) -> bool:
        return _library_available("bs4")

    def _convert_to(self, tag: Tag) -> Any:
        from bs4 import BeautifulSoup

        return BeautifulSoup(to_markup(tag), self.parser_features)

    def _describe(self, converted: Any) -> Dict[str, Any]:
        return {
            "parser": self.parser_features,
            "element_count": len(converted.find_all(True)),
        }

    def _convert_from(self, target_data: Any) -> Tag:
        from bs4 import BeautifulSoup
        from bs4 import Tag as SoupTag

        if isinstance(target_data, BeautifulSoup):
            root = next(
                (child for child in target_data.children if isinstance(child, SoupTag)),
                None
            )
            if root is None:
                raise ValueError("BeautifulSoup document has no root element")
            target_data = root
        if not isinstance(target_data, SoupTag):
            raise TypeError("Target data is not a BeautifulSoup tag")
        return self._soup_to_tag(target_data)

    def _soup_to_tag(self, soup_tag: Any) -> Tag:
        from bs4 import NavigableString
        from bs4 import Tag as SoupTag

        attributes = {
            key: " ".join(value) if isinstance(value, list) else value
            for key, value in soup_tag.attrs.items()
        }
        children: List[Node] = []
        for child in soup_tag.children:
            if isinstance(child, SoupTag):
                children.append(self._soup_to_tag(child))
            # Comments, CDATA and doctypes are NavigableString subclasses
            elif type(child) is NavigableString:
                children.append(Text(str(child)))
        return Tag.create(soup_tag.name, attributes, children)


class PandasAdapter(IntegrationAdapter):
    """Adapter flattening a tree into a pandas DataFrame, one row per tag.

    Columns are ``path``, ``depth``, ``name``, ``text`` (the tag's direct text
    children joined) and one ``attr_<key>`` column per attribute key. Rows are
    in document order. Converting back nests each tag's text before its child
    tags, so interleaving of text and tags is not preserved.
    """

    ATTRIBUTE_PREFIX = "attr_"

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            supported_versions=["1.0+"],
            description="Tabular view of parsed trees as pandas DataFrames"
        )

    def is_available(self) -> bool:
        return _library_available("pandas")

    def _convert_to(self, tag: Tag) -> Any:
        import pandas as pd

        rows: List[Dict[str, Any]] = []
        self._extract_rows(tag, f"/{tag.name}", 0, rows)
        return pd.DataFrame(rows)

    def _extract_rows(
        self, tag: Tag, path: str, depth: int, rows: List[Dict[str, Any]]
    ) -> None:
        row: Dict[str, Any] = {
            "path": path,
            "depth": depth,
            "name": tag.name,
            "text": "".join(
                child.content for child in tag.children if isinstance(child, Text)
            ),
        }
        for key, value in tag.attributes.items():
            row[f"{self.ATTRIBUTE_PREFIX}{key}"] = value
        rows.append(row)

        for index, child in enumerate(tag.node.tags):
            self._extract_rows(child, f"{path}/{child.name}[{index}]", depth + 1, rows)

    def _describe(self, converted: Any) -> Dict[str, Any]:
        return {
            "dataframe_shape": converted.shape,
            "row_count": len(converted),
            "columns": list(converted.columns),
        }

    def _convert_from(self, target_data: Any) -> Tag:
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise TypeError("Target data is not a pandas DataFrame")
        if target_data.empty:
            raise ValueError("DataFrame has no rows")
        missing = {"depth", "name"} - set(target_data.columns)
        if missing:
            raise KeyError(f"DataFrame is missing columns: {sorted(missing)}")

        attribute_columns = [
            column for column in target_data.columns
            if str(column).startswith(self.ATTRIBUTE_PREFIX)
        ]
        # Each stack entry: (depth, name, attributes, text, child tags)
        stack: List[tuple] = []
        root: Optional[Tag] = None

        def close_top() -> Optional[Tag]:
            depth, name, attributes, text, tags = stack.pop()
            children: List[Node] = [Text(text)] if text else []
            tag = Tag.create(name, attributes, children + tags)
            if stack:
                stack[-1][4].append(tag)
                return None
            return tag

        for _, row in target_data.iterrows():
            depth = int(row["depth"])
            if not stack and depth != 0:
                raise ValueError("DataFrame must start with a root at depth 0")
            if stack and depth > stack[-1][0] + 1:
                raise ValueError(f"Depth jumps from {stack[-1][0]} to {depth}")
            while stack and stack[-1][0] >= depth:
                root = close_top()
            if root is not None:
                raise ValueError("DataFrame must describe exactly one root at depth 0")

            attributes = {
                column[len(self.ATTRIBUTE_PREFIX):]: str(row[column])
                for column in attribute_columns
                if pd.notna(row[column])
            }
            text = row["text"] if "text" in row and pd.notna(row["text"]) else ""
            stack.append((depth, str(row["name"]), attributes, str(text), []))

        while stack:
            root = close_top()
        return root


# Auto-register document library adapters
register_adapter(LxmlAdapter)
register_adapter(BeautifulSoupAdapter)
register_adapter(PandasAdapter)
