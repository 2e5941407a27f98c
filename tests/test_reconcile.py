"""Tests for selection reconciliation."""
from onix_catalog.models import NormalizedBook, PersistedBookState, RawProductRecord
from onix_catalog.reconcile import Reconciler
from onix_catalog.state import PriorState


def make_book(isbn: str) -> NormalizedBook:
    return NormalizedBook(
        isbn=isbn,
        title="Title",
        imprint="Imprint",
        pub_date="20240101",
        on_sale_date="20240102",
        us_price="9.99",
        classification_code="FIC000000",
        language="eng"
    )


def make_record(file_name: str, release: float = 2.1) -> RawProductRecord:
    return RawProductRecord(
        release_version=release,
        product_node=None,
        origin_file_path=f"./xml_metadata/Pub/{file_name}",
        origin_file_name=file_name
    )


def test_selected_isbn_is_marked():
    reconciler = Reconciler(PriorState(selections={"111": "x"}))

    assert reconciler.merge(make_book("111"), make_record("a.xml")).selected == "x"
    assert reconciler.merge(make_book("222"), make_record("a.xml")).selected == ""


def test_any_marker_counts_as_selected():
    reconciler = Reconciler(PriorState(selections={"111": "yes", "222": "  "}))

    assert reconciler.merge(make_book("111"), make_record("a.xml")).selected == "x"
    assert reconciler.merge(make_book("222"), make_record("a.xml")).selected == ""


def test_merge_records_state():
    reconciler = Reconciler(PriorState(selections={"111": "x"}))
    reconciler.merge(make_book("111"), make_record("a.xml", 3.0))

    assert reconciler.state == {
        "111": PersistedBookState("./xml_metadata/Pub/a.xml", "a.xml", 3, "x")
    }


def test_later_duplicate_isbn_wins():
    reconciler = Reconciler(PriorState())
    reconciler.merge(make_book("111"), make_record("a.xml", 2.1))
    reconciler.merge(make_book("111"), make_record("b.xml", 3.0))

    assert reconciler.state["111"].origin_file_name == "b.xml"
    assert reconciler.state["111"].detected_version == 3


def test_state_is_rebuilt_not_unioned():
    """ISBNs from the last run that are not seen again are dropped."""
    prior = PriorState(books={
        "111": PersistedBookState("p", "old.xml", 2),
        "999": PersistedBookState("p", "gone.xml", 2),
    })
    reconciler = Reconciler(prior)
    reconciler.merge(make_book("111"), make_record("a.xml"))

    assert list(reconciler.state) == ["111"]
    assert reconciler.dropped_isbns() == ["999"]
