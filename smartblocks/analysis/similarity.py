"""
Word-overlap similarity between blocks.

A linear scan per query, fine for a personal collection of notes. Not an
index.
"""

from typing import Iterable, List, Set

from ..models import Block, MatchResult


DEFAULT_THRESHOLD = 0.3


def _word_set(text: str) -> Set[str]:
    return set(text.lower().split())


def similarity(a: Block, b: Block) -> float:
    """
    Jaccard index of the two blocks' lower-cased word sets.

    Args:
        a: First block
        b: Second block

    Returns:
        |intersection| / |union| in [0, 1], or 0.0 if either block has no words
    """
    words_a = _word_set(a.content)
    words_b = _word_set(b.content)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def find_similar(block: Block, corpus: Iterable[Block], threshold: float = DEFAULT_THRESHOLD) -> List[MatchResult]:
    """
    Find blocks in a corpus whose content overlaps with the given block.

    The query block itself is skipped. Other blocks that share its id are
    still scored.

    Args:
        block: The query block
        corpus: Blocks to compare against
        threshold: Minimum score, exclusive

    Returns:
        Matches scoring above the threshold, best first
    """
    results = []
    for other in corpus:
        if other is block:
            continue
        score = similarity(block, other)
        if score > threshold:
            results.append(MatchResult(block=other, confidence=score, match_type="fuzzy"))

    results.sort(key=lambda match: match.confidence, reverse=True)
    return results
