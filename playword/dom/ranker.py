from typing import List, Optional, Sequence, Tuple

import numpy as np

from .elements import sanitize
from ..core.config import TOP_K
from ..core.errors import NoCandidateError, ReasonerMalformedOutput
from ..core.logger import Logger
from ..core.types import ElementLocation, VectorRecord
from ..utils.imaging import image_to_data_url


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def rank(query: Sequence[float], records: List[VectorRecord], k: int = TOP_K) -> List[Tuple[int, float]]:
    """(position, similarity) of the ``k`` closest records, best first.

    ``sorted`` is stable, so equal similarities keep document order.
    """
    scored = [(i, cosine_similarity(query, r["embedding"])) for i, r in enumerate(records)]
    return sorted(scored, key=lambda x: x[1], reverse=True)[:k]


class ElementIndex:
    """Semantic index over the candidate elements of one page or frame.

    Built fresh for every resolution and thrown away afterwards.
    """

    def __init__(self, reasoner, top_k: int = TOP_K, logger: Optional[Logger] = None):
        self.reasoner = reasoner
        self.top_k = top_k
        self.logger = logger or Logger()
        self.locations: List[ElementLocation] = []
        self.records: List[VectorRecord] = []

    async def build(self, locations: List[ElementLocation]) -> "ElementIndex":
        if not locations:
            raise NoCandidateError()
        self.locations = [dict(loc, html=sanitize(loc["html"])) for loc in locations]
        contents = [loc["html"] for loc in self.locations]
        embeddings = await self.reasoner.embed_documents(contents)
        self.records = [
            {"content": c, "embedding": e} for c, e in zip(contents, embeddings)
        ]
        self.logger.info("Ranker", f"Indexed {len(self.records)} candidate elements")
        return self

    async def search(self, intent: str, k: Optional[int] = None) -> List[ElementLocation]:
        if not self.records:
            raise NoCandidateError(intent)
        query = await self.reasoner.embed_query(intent)
        ranked = rank(query, self.records, k or self.top_k)
        for pos, score in ranked:
            self.logger.info("Ranker", f"  {score:.3f} {self.locations[pos]['xpath']}")
        return [self.locations[pos] for pos, _ in ranked]

    async def select(self, user_input: str, keywords: str, screenshot: Optional[str] = None) -> ElementLocation:
        """Ask the Reasoner which of the top-K candidates ``user_input`` refers to."""
        candidates = await self.search(keywords)
        index = await self.reasoner.get_best_candidate(
            user_input, [c["html"] for c in candidates], screenshot=screenshot)
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(candidates):
            raise ReasonerMalformedOutput(
                f"Candidate index {index!r} is outside [0, {len(candidates)})")
        chosen = candidates[index]
        self.logger.info("Ranker", f"Selected #{index}: {chosen['xpath']}")
        return chosen


async def locate(session, keywords: str, tags: List[str]) -> ElementLocation:
    """Collect, index and pick the element ``keywords`` describes on the current page or frame."""
    locations = await session.actuator.element_locations(tags)
    if not locations:
        raise NoCandidateError(keywords)
    index = ElementIndex(session.reasoner, logger=session.logger)
    await index.build(locations)
    screenshot = None
    if session.use_screenshot:
        screenshot = image_to_data_url(await session.actuator.screenshot())
    return await index.select(session.input or keywords, keywords, screenshot=screenshot)
