"""Persisted per-ISBN state and prior-run loading."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Union
import json
import logging
import os
import tempfile

from onix_catalog.models import PersistedBookState
from onix_catalog.workbook import read_prior_selections

logger = logging.getLogger(__name__)

BookStateMap = Dict[str, PersistedBookState]


class StateRepository:
    """JSON file holding ISBN -> PersistedBookState, rewritten whole each run."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> BookStateMap:
        """
        Read the previous run's state.

        Returns:
            State keyed by ISBN; empty when the file is absent or unreadable
        """
        if not self.path.exists():
            logger.info(f"No state file at {self.path}; first run")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}

        # Older files hold a list of [isbn, info] pairs
        entries = data.items() if isinstance(data, dict) else data
        state: BookStateMap = {}
        try:
            for isbn, info in entries:
                state[str(isbn)] = PersistedBookState.from_dict(info)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed state file {self.path}: {e}")
            return {}

        logger.info(f"Loaded state for {len(state)} books from {self.path}")
        return state

    def save(self, state: Mapping[str, PersistedBookState]) -> None:
        """Replace the state file with ``state``, preserving its order."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {isbn: entry.to_dict() for isbn, entry in state.items()}

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"Saved state for {len(payload)} books to {self.path}")


@dataclass
class PriorState:
    """What the previous run left behind."""
    books: BookStateMap = field(default_factory=dict)
    selections: Dict[str, str] = field(default_factory=dict)

    def is_selected(self, isbn: str) -> bool:
        return bool(self.selections.get(isbn, "").strip())


def load_prior_state(
    repository: StateRepository,
    output_path: Union[str, Path],
    output_sheet: str
) -> PriorState:
    """
    Build both ISBN-keyed lookups for a run.

    Args:
        repository: Persisted state store
        output_path: Previous output workbook
        output_sheet: Sheet holding the selection column

    Returns:
        PriorState; missing sources contribute empty maps
    """
    return PriorState(
        books=repository.load(),
        selections=read_prior_selections(output_path, output_sheet)
    )
