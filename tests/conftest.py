"""Shared fixtures."""
import pytest

from onix_catalog.classification import ClassificationTable
from onix_catalog.models import ClassificationRow, SubjectPhraseRule
from onix_catalog.subjects import SubjectPhraseMatcher


@pytest.fixture
def classifications():
    return ClassificationTable([
        ClassificationRow("FIC022000", "FICTION / Mystery & Detective / General", "Mystery"),
        ClassificationRow("FIC000000", "FICTION / General"),
        ClassificationRow("JUV000000", "JUVENILE FICTION / General", "Kids"),
    ])


@pytest.fixture
def subject_matcher():
    return SubjectPhraseMatcher([
        SubjectPhraseRule("Mystery", "Whodunit"),
        SubjectPhraseRule("detective", "Whodunit"),
        SubjectPhraseRule("sea", "Nautical"),
    ])
