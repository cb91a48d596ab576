from __future__ import annotations

import logging
from typing import Iterable, Optional

from .page import PageElement, PageQuery
from .selectors import SelectorCandidate


logger = logging.getLogger(__name__)


def resolve(candidates: Iterable[SelectorCandidate], page: PageQuery) -> Optional[PageElement]:
    """
    Return the first candidate present on the page, or None if none is.

    A candidate whose lookup raises (detached frame, invalid selector on an older engine, ...)
    is skipped rather than aborting the whole chain.
    """
    for cand in candidates:
        selector = cand.to_selector()
        try:
            element = page.query(selector)
        except Exception:
            logger.debug("Selector lookup failed (selector=%s); trying next candidate.", selector, exc_info=True)
            continue
        if element is not None:
            logger.info("Resolved element with selector: %s", selector)
            return element
    return None
