"""Map ONIX 2.x and 3.x product records onto the catalog schema.

Both releases describe the same book, but 3.0 moved several fields:
publication and on-sale dates became role-coded ``PublishingDate``
composites, the main BISAC code moved into a ``Subject`` composite flagged
with ``MainSubject``, and titles may be split into prefix and remainder.
"""
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from onix_catalog.classification import ClassificationTable
from onix_catalog.document import ProductNode
from onix_catalog.models import NormalizedBook, RawProductRecord, ValidationFailure
from onix_catalog.runtime import decode_runtime
from onix_catalog.subjects import SubjectPhraseMatcher

ISBN13_ID_TYPE = "15"
RUNTIME_EXTENT_TYPE = "09"
PUBLICATION_DATE_ROLE = "01"
ON_SALE_DATE_ROLE = "02"
US_CURRENCY = "USD"
# Feeds have not been confirmed to carry CAD prices, so ca_price mirrors
# the USD amount until the intended currency is settled.
CA_PRICE_CURRENCY = US_CURRENCY

ExtractResult = Union[NormalizedBook, ValidationFailure]


def first_with_code(node: ProductNode, path: str, code_path: str, code: str) -> Optional[ProductNode]:
    """First node under ``path`` whose ``code_path`` child text equals ``code``."""
    for candidate in node.findall(path):
        if candidate.findtext(code_path) == code:
            return candidate
    return None


class VersionAdapter:
    """Shared field mapping; subclasses supply the release-specific fields."""

    name = "ONIX"
    version_band: Tuple[int, int] = (0, 0)

    def __init__(self, classifications: ClassificationTable, subject_matcher: SubjectPhraseMatcher):
        self.classifications = classifications
        self.subject_matcher = subject_matcher

    def accepts(self, release_version: float) -> bool:
        low, high = self.version_band
        return low <= release_version < high

    def extract(self, record: RawProductRecord) -> ExtractResult:
        """
        Normalize one product record.

        Args:
            record: Raw product from a source document

        Returns:
            NormalizedBook, or ValidationFailure listing the missing fields
        """
        node = record.product_node
        fields = self.map_fields(node)
        fields.update(self.map_categories(node, fields.get("classification_code")))

        # Absent values are left out so they report as missing, not mistyped
        candidate = {key: value for key, value in fields.items() if value is not None}

        try:
            return NormalizedBook.model_validate(candidate)
        except ValidationError as e:
            return ValidationFailure.from_error(e, record.origin_file_name, fields.get("isbn"))

    def map_fields(self, node: ProductNode) -> Dict[str, Any]:
        return {
            "isbn": self.isbn(node),
            "title": self.title(node),
            "subtitle": node.findtext(".//Subtitle"),
            "contributors": self.contributors(node),
            "imprint": node.findtext(".//ImprintName"),
            "pub_date": self.pub_date(node),
            "on_sale_date": self.on_sale_date(node),
            "us_price": self.price_amount(node, US_CURRENCY),
            "ca_price": self.price_amount(node, CA_PRICE_CURRENCY),
            "runtime": self.runtime(node),
            "classification_code": self.classification_code(node),
            "language": node.findtext(".//LanguageCode"),
        }

    def map_categories(self, node: ProductNode, code: Optional[str]) -> Dict[str, str]:
        categories = self.classifications.lookup(code or "")
        matched = self.subject_matcher.match(self.subject_text(node))
        custom = " ".join(part for part in (categories.custom_tag, matched) if part)
        return {
            "primary_category": categories.primary,
            "secondary_categories": categories.secondary,
            "custom_category": custom,
        }

    # Rules shared by both releases

    def isbn(self, node: ProductNode) -> Optional[str]:
        identifier = first_with_code(node, ".//ProductIdentifier", "ProductIDType", ISBN13_ID_TYPE)
        return identifier.findtext("IDValue") if identifier is not None else None

    def contributors(self, node: ProductNode) -> str:
        names = [contributor.findtext(".//PersonName") for contributor in node.findall(".//Contributor")]
        return ", ".join(name for name in names if name)

    def price_amount(self, node: ProductNode, currency: str) -> Optional[str]:
        price = first_with_code(node, ".//Price", "CurrencyCode", currency)
        return price.findtext("PriceAmount") if price is not None else None

    def runtime(self, node: ProductNode) -> Optional[str]:
        extent = first_with_code(node, ".//Extent", "ExtentType", RUNTIME_EXTENT_TYPE)
        if extent is None:
            return None
        return decode_runtime(extent.findtext("ExtentUnit"), extent.findtext("ExtentValue"))

    def subject_text(self, node: ProductNode) -> str:
        heading = node.findtext(".//SubjectHeadingText")
        if heading is not None:
            return heading
        return " ".join(text.text or "" for text in node.findall(".//Text"))

    # Release-specific rules

    def title(self, node: ProductNode) -> Optional[str]:
        raise NotImplementedError

    def pub_date(self, node: ProductNode) -> Optional[str]:
        raise NotImplementedError

    def on_sale_date(self, node: ProductNode) -> Optional[str]:
        raise NotImplementedError

    def classification_code(self, node: ProductNode) -> Optional[str]:
        raise NotImplementedError


class Onix2Adapter(VersionAdapter):
    """ONIX 2.x: flat single-element fields."""

    name = "ONIX 2"
    version_band = (2, 3)

    def title(self, node: ProductNode) -> Optional[str]:
        return node.findtext(".//TitleText")

    def pub_date(self, node: ProductNode) -> Optional[str]:
        return node.findtext(".//PublicationDate")

    def on_sale_date(self, node: ProductNode) -> Optional[str]:
        return node.findtext(".//OnSaleDate")

    def classification_code(self, node: ProductNode) -> Optional[str]:
        return node.findtext(".//BASICMainSubject")


class Onix3Adapter(VersionAdapter):
    """ONIX 3.x: role-coded dates, flagged main subject, split titles."""

    name = "ONIX 3"
    version_band = (3, 4)

    def title(self, node: ProductNode) -> Optional[str]:
        title_text = node.findtext(".//TitleText")
        if title_text:
            return title_text
        parts = [node.findtext(".//TitlePrefix"), node.findtext(".//TitleWithoutPrefix")]
        parts = [part for part in parts if part]
        return " ".join(parts) if parts else None

    def _publishing_date(self, node: ProductNode, role: str) -> Optional[str]:
        date = first_with_code(node, ".//PublishingDate", "PublishingDateRole", role)
        return date.findtext("Date") if date is not None else None

    def pub_date(self, node: ProductNode) -> Optional[str]:
        return self._publishing_date(node, PUBLICATION_DATE_ROLE)

    def on_sale_date(self, node: ProductNode) -> Optional[str]:
        return self._publishing_date(node, ON_SALE_DATE_ROLE)

    def classification_code(self, node: ProductNode) -> Optional[str]:
        for subject in node.findall(".//Subject"):
            if subject.find("MainSubject") is not None:
                return subject.findtext("SubjectCode")
        return None


ADAPTER_TYPES = (Onix2Adapter, Onix3Adapter)


def build_adapters(
    classifications: ClassificationTable,
    subject_matcher: SubjectPhraseMatcher
) -> Tuple[VersionAdapter, ...]:
    """One adapter per supported release band, sharing the lookup tables."""
    return tuple(adapter_type(classifications, subject_matcher) for adapter_type in ADAPTER_TYPES)


def adapter_for(release_version: float, adapters: Tuple[VersionAdapter, ...]) -> Optional[VersionAdapter]:
    """
    Select the adapter whose band contains ``release_version``.

    Returns None for unsupported releases; callers skip those records.
    """
    for adapter in adapters:
        if adapter.accepts(release_version):
            return adapter
    return None
