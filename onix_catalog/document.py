"""Read ONIX documents into queryable product nodes."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from lxml import etree
import logging

logger = logging.getLogger(__name__)

PRODUCT_TAG = "Product"


class DocumentParseError(Exception):
    """A source document could not be turned into product nodes."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ProductNode:
    """Read-only tag-path queries over one element of a document."""

    def __init__(self, element):
        self._element = element

    @property
    def tag(self) -> str:
        return self._element.tag

    @property
    def text(self) -> Optional[str]:
        """Stripped text of this element, or None if it has none."""
        if self._element.text is None:
            return None
        return self._element.text.strip()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Read an attribute."""
        return self._element.get(name, default)

    def find(self, path: str) -> Optional["ProductNode"]:
        """First descendant matching ``path``, or None."""
        element = self._element.find(path)
        return ProductNode(element) if element is not None else None

    def findall(self, path: str) -> List["ProductNode"]:
        """All descendants matching ``path`` in document order."""
        return [ProductNode(element) for element in self._element.findall(path)]

    def findtext(self, path: str) -> Optional[str]:
        """
        Stripped text of the first match.

        Returns None when nothing matches and "" when the match is empty.
        """
        text = self._element.findtext(path)
        return text.strip() if text is not None else None

    def __repr__(self) -> str:
        return f"ProductNode({self.tag!r})"


@dataclass
class SourceDocument:
    """A parsed document and the products it declares."""
    path: str
    file_name: str
    release: Optional[str]
    products: List[ProductNode] = field(default_factory=list)


def _strip_namespaces(root) -> None:
    """Rewrite namespaced tags to local names so one set of paths fits all."""
    for element in root.iter():
        if isinstance(element.tag, str) and element.tag.startswith("{"):
            element.tag = etree.QName(element).localname
    etree.cleanup_namespaces(root)


def parse_document(path: Union[str, Path]) -> SourceDocument:
    """
    Parse one ONIX file.

    Args:
        path: Path to the XML document

    Returns:
        SourceDocument with the root's release attribute and its products

    Raises:
        DocumentParseError: unreadable file, malformed XML, or no products
    """
    path = Path(path)
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        huge_tree=True
    )

    try:
        tree = etree.parse(str(path), parser)
    except OSError as e:
        raise DocumentParseError(path, f"cannot read file ({e})") from e
    except etree.XMLSyntaxError as e:
        raise DocumentParseError(path, f"malformed XML ({e})") from e

    root = tree.getroot()
    _strip_namespaces(root)
    message = ProductNode(root)

    products = [ProductNode(element) for element in root.findall(PRODUCT_TAG)]
    if not products:
        raise DocumentParseError(path, "no Product records found")

    logger.debug(f"Parsed {path.name}: {len(products)} product(s)")

    return SourceDocument(
        path=str(path),
        file_name=path.name,
        release=message.get("release"),
        products=products
    )
