"""Conformance testing oracles approximating equivalence queries.

Test words have the shape access·middle·suffix where access ranges over a
state or transition cover of the hypothesis, middle over all words of
length 0..depth and suffix over characterizing suffixes. See Chow,
"Testing software design modeled by finite-state machines" (W-method) and
Fujiwara et al., "Test selection based on finite state models" (Wp-method).

Finding no counterexample only shows the hypothesis and the system agree
on the generated words, not that they are equivalent.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Iterator, Optional

from more_itertools import unique_everseen

from dfa_lstar.hypothesis import Hypothesis, State
from dfa_lstar.oracles import OracleLike, oracle_for
from dfa_lstar.words import EMPTY, Alphabet, Word, format_word


logger = logging.getLogger(__name__)


def state_cover(hypothesis: Hypothesis) -> dict[State, Word]:
    """Shortest access word per state (BFS, alphabet order breaks ties)."""
    cover = {hypothesis.initial: EMPTY}
    queue = deque([hypothesis.initial])
    while queue:
        state = queue.popleft()
        for a in hypothesis.alphabet:
            succ = hypothesis.transition(state, a)
            if succ not in cover:
                cover[succ] = cover[state] + (a,)
                queue.append(succ)
    return cover


def transition_cover(hypothesis: Hypothesis) -> list[Word]:
    """State cover followed by all one symbol extensions of it."""
    access = list(state_cover(hypothesis).values())
    extended = [u + (a,) for u in access for a in hypothesis.alphabet]
    return list(unique_everseen(access + extended))


def middle_parts(alphabet: Alphabet, depth: int) -> list[Word]:
    if depth < 0:
        raise ValueError("Exploration depth must be non-negative.")
    return list(alphabet.words(depth))


class ConformanceOracle:
    """Base class for cover based conformance testing.

    Subclasses pick the characterizing suffixes appended after the state
    reached by access·middle via `suffixes_for`.
    """

    def __init__(self, sul: OracleLike, depth: int = 4):
        if depth < 0:
            raise ValueError("Exploration depth must be non-negative.")
        self.sul = oracle_for(sul)
        self.depth = depth
        self.query_count = 0

    def suffixes_for(self, state: State, hypothesis: Hypothesis) -> list[Word]:
        raise NotImplementedError

    def _sweep(self, hypothesis: Hypothesis, access_words: Iterable[Word],
               suffixes_for) -> Iterator[Word]:
        middles = middle_parts(hypothesis.alphabet, self.depth)
        for u in access_words:
            for m in middles:
                state = hypothesis.run(u + m)
                for e in suffixes_for(state, hypothesis):
                    yield u + m + e

    def _candidates(self, hypothesis: Hypothesis) -> Iterator[Word]:
        raise NotImplementedError

    def test_words(self, hypothesis: Hypothesis) -> list[Word]:
        """Deduplicated test words, shortest first.

        Words of equal length keep their generation order.
        """
        words = unique_everseen(self._candidates(hypothesis))
        return sorted(words, key=len)

    def find_counterexample(self, hypothesis: Hypothesis) -> Optional[Word]:
        words = self.test_words(hypothesis)
        logger.debug("%s: %d test words at depth %d.",
                     type(self).__name__, len(words), self.depth)
        for word in words:
            self.query_count += 1
            if self.sul.query(word) != hypothesis.accepts(word):
                logger.info("Counterexample %s.", format_word(word))
                return word
        logger.info("No counterexample up to depth %d.", self.depth)
        return None


class WMethodOracle(ConformanceOracle):
    """Transition cover x middle parts x global characterizing set."""

    def suffixes_for(self, state: State, hypothesis: Hypothesis) -> list[Word]:
        return hypothesis.characterizing_set()

    def _candidates(self, hypothesis: Hypothesis) -> Iterator[Word]:
        global_set = self.suffixes_for(hypothesis.initial, hypothesis)
        yield from self._sweep(hypothesis, transition_cover(hypothesis),
                               lambda *_: global_set)


class WpMethodOracle(ConformanceOracle):
    """Partial W-method.

    The state cover is tested with the global characterizing set. The rest
    of the transition cover is tested with the local suffix set of the
    state reached, which only separates that state from the others.
    """

    def suffixes_for(self, state: State, hypothesis: Hypothesis) -> list[Word]:
        return hypothesis.state_characterizing_set(state)

    def _candidates(self, hypothesis: Hypothesis) -> Iterator[Word]:
        access = list(state_cover(hypothesis).values())
        global_set = hypothesis.characterizing_set()
        yield from self._sweep(hypothesis, access,
                               lambda *_: global_set)

        covered = set(access)
        transitions = [u for u in transition_cover(hypothesis)
                       if u not in covered]
        local_sets = {q: self.suffixes_for(q, hypothesis)
                      for q in hypothesis.states}
        yield from self._sweep(hypothesis, transitions,
                               lambda q, _: local_sets[q])


__all__ = ['ConformanceOracle', 'WMethodOracle', 'WpMethodOracle',
           'state_cover', 'transition_cover', 'middle_parts']
