"""
Directive Queue
Strategic directives waiting for a content agent.
"""

import logging
from typing import List

from pydantic import ValidationError

from aiprime.schemas.system import Directive
from aiprime.services.state_storage import StateStorage, DIRECTIVES_KEY

logger = logging.getLogger(__name__)


class DirectiveQueue:
    """Newest-first directive list, de-duplicated by directive text."""

    def __init__(self, storage: StateStorage, key: str = DIRECTIVES_KEY):
        self.storage = storage
        self.key = key

    def list(self) -> List[Directive]:
        raw = self.storage.get(self.key, [])
        if not isinstance(raw, list):
            return []
        directives = []
        for item in raw:
            try:
                directives.append(Directive.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed persisted directive")
        return directives

    def _save(self, directives: List[Directive]) -> None:
        self.storage.set(self.key, [d.model_dump(by_alias=True) for d in directives])

    def add(self, directive: Directive) -> bool:
        """Queue a directive. Returns False if the same text is already queued."""
        directives = self.list()
        if any(d.directive == directive.directive for d in directives):
            return False
        self._save([directive, *directives])
        return True

    def remove(self, directive_text: str) -> bool:
        directives = self.list()
        remaining = [d for d in directives if d.directive != directive_text]
        if len(remaining) == len(directives):
            return False
        self._save(remaining)
        return True

    def replace_all(self, directives: List[Directive]) -> None:
        self._save(list(directives))
