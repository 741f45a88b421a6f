"""Free-text location hint resolution.

End users answer "which location?" questions loosely ("the Scottsdale campus",
"mesa pls", "32nd st"). Every keyword found in the hint that also appears in a
location's name adds that keyword's weight to the location's score, and the
highest score wins. Distinctive neighbourhood keywords carry more weight than
city names shared by several locations.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from leadrelay.config import DEFAULT_LOCATION_KEYWORDS
from leadrelay.schemas.tenant import Location

logger = logging.getLogger(__name__)

KeywordWeights = Sequence[Tuple[str, int]]


def keyword_table(weights: Mapping[str, int] | None = None) -> List[Tuple[str, int]]:
    source = DEFAULT_LOCATION_KEYWORDS if weights is None else weights
    return [
        (keyword.strip().lower(), int(weight))
        for keyword, weight in source.items()
        if keyword and keyword.strip()
    ]


class LocationResolver:
    def __init__(self, keywords: KeywordWeights | None = None) -> None:
        self._keywords = list(keywords) if keywords is not None else keyword_table()

    @property
    def keywords(self) -> List[Tuple[str, int]]:
        return list(self._keywords)

    def score(self, hint: str, name: str) -> int:
        text = (hint or "").lower()
        candidate = (name or "").lower()
        total = 0
        for keyword, weight in self._keywords:
            if keyword in text and keyword in candidate:
                total += weight
        return total

    def resolve(self, hint: str, locations: Iterable[Location]) -> Optional[Location]:
        """Return the best-scoring location for ``hint`` or ``None``.

        Ties keep the earliest location. A blank hint or a hint that scores
        zero against every location is not a match.
        """

        if not hint or not hint.strip():
            return None

        best: Optional[Location] = None
        best_score = 0
        for location in locations:
            current = self.score(hint, location.name)
            if current > best_score:
                best, best_score = location, current

        if best is None:
            logger.info("No location matched hint %r", hint)
        else:
            logger.debug("Hint %r matched %s:%s (score %s)", hint, best.id, best.name, best_score)
        return best
