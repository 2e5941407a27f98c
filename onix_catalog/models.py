"""Data models for catalog records."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

if TYPE_CHECKING:
    from onix_catalog.document import ProductNode

SELECTED_MARKER = "x"
SELECTION_COLUMN = "To Collect (x)"


@dataclass
class RawProductRecord:
    """One product as found in a source document."""
    release_version: float
    product_node: "ProductNode"
    origin_file_path: str
    origin_file_name: str

    @property
    def major_version(self) -> int:
        """Release truncated to its major number (2.1 -> 2)."""
        return int(self.release_version)


class NormalizedBook(BaseModel):
    """Normalized catalog row.

    Field names are Python-side; ``model_dump(by_alias=True)`` yields the
    spreadsheet column headers.
    """
    isbn: str = Field(min_length=1)
    title: str
    subtitle: Optional[str] = None
    contributors: str = ""
    imprint: str
    pub_date: str = Field(serialization_alias="pubDate")
    on_sale_date: str = Field(serialization_alias="onSaleDate")
    us_price: str = Field(serialization_alias="usPrice")
    ca_price: Optional[str] = Field(default=None, serialization_alias="caPrice")
    runtime: Optional[str] = None
    classification_code: str = Field(serialization_alias="BISAC")
    language: str
    primary_category: Optional[str] = Field(default=None, serialization_alias="primaryCategory")
    secondary_categories: Optional[str] = Field(default=None, serialization_alias="secondaryCategories")
    custom_category: Optional[str] = Field(default=None, serialization_alias="customCategory")
    selected: str = Field(default="", serialization_alias=SELECTION_COLUMN)

    @property
    def is_selected(self) -> bool:
        return bool(self.selected)


@dataclass
class ValidationFailure:
    """Field-level reasons a product could not be normalized."""
    origin_file_name: str
    isbn: Optional[str]
    reasons: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_error(
        cls,
        error: ValidationError,
        origin_file_name: str,
        isbn: Optional[str]
    ) -> "ValidationFailure":
        """Flatten a pydantic error into ``{field: [reason, ...]}``."""
        reasons: Dict[str, List[str]] = {}
        for detail in error.errors():
            loc = detail.get("loc") or ("__root__",)
            reasons.setdefault(str(loc[0]), []).append(detail["msg"])
        return cls(origin_file_name=origin_file_name, isbn=isbn, reasons=reasons)

    @property
    def fields(self) -> List[str]:
        return list(self.reasons)

    def __str__(self) -> str:
        details = "; ".join(
            f"{name}: {', '.join(messages)}" for name, messages in self.reasons.items()
        )
        return f"{self.origin_file_name} [{self.isbn or 'no ISBN'}] {details}"


@dataclass(frozen=True)
class ClassificationRow:
    """One row of the classification-code sheet."""
    code: str
    category_path: str
    custom_category: str = ""


@dataclass(frozen=True)
class SubjectPhraseRule:
    phrase: str
    tag: str


@dataclass(frozen=True)
class Categories:
    """Result of a classification lookup. Empty strings mean no match."""
    primary: str = ""
    secondary: str = ""
    custom_tag: str = ""


@dataclass
class PersistedBookState:
    """Per-ISBN bookkeeping carried between runs."""
    origin_file_path: str
    origin_file_name: str
    detected_version: int
    selected: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originFilePath": self.origin_file_path,
            "originFileName": self.origin_file_name,
            "detectedVersion": self.detected_version,
            "selected": self.selected,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedBookState":
        # Older state files used onixVer/toCollect
        version = data.get("detectedVersion", data.get("onixVer", 0))
        selected = data.get("selected", data.get("toCollect", ""))
        return cls(
            origin_file_path=str(data.get("originFilePath", "")),
            origin_file_name=str(data.get("originFileName", "")),
            detected_version=int(version or 0),
            selected=str(selected or ""),
        )
