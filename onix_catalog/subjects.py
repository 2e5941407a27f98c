"""Free-text subject phrase matching."""
from typing import Iterable, List
import logging

from onix_catalog.models import SubjectPhraseRule

logger = logging.getLogger(__name__)

TAG_JOINER = ", "


class SubjectPhraseMatcher:
    """Ordered (phrase, tag) rules applied as literal substring tests."""

    def __init__(self, rules: Iterable[SubjectPhraseRule]):
        # An empty phrase would match every text
        self._rules = tuple(rule for rule in rules if rule.phrase and rule.tag)
        logger.info(f"Loaded {len(self._rules)} subject phrase rules")

    def __len__(self) -> int:
        return len(self._rules)

    def matching_tags(self, text: str) -> List[str]:
        """Tags whose phrase occurs in ``text``, first-seen order, no repeats."""
        if not text:
            return []

        tags: List[str] = []
        for rule in self._rules:
            if rule.phrase in text and rule.tag not in tags:
                tags.append(rule.tag)
        return tags

    def match(self, text: str) -> str:
        """Matched tags joined with ", " (empty string when none fire)."""
        return TAG_JOINER.join(self.matching_tags(text))
