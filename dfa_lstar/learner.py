"""L* learners: Angluin's classic algorithm and the Rivest-Schapire variant.

Both variants share the observation table and hypothesis extraction. They
only differ in how a counterexample is folded into the table, which is
captured by a strategy object chosen when the learner is constructed.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Optional, Union

import attr

from dfa_lstar.hypothesis import Hypothesis
from dfa_lstar.oracles import OracleLike, oracle_for
from dfa_lstar.table import ObservationTable
from dfa_lstar.words import EMPTY, Word, format_word, suffixes


logger = logging.getLogger(__name__)


class LearnerStateError(RuntimeError):
    """Operation not allowed in the learner's current state."""


class InvalidCounterexampleError(ValueError):
    """Word is classified correctly by the current hypothesis."""


class LearnerState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    REFINING = "refining"


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class ClassicStrategy:
    """Angluin's L*.

    Adds every prefix of the counterexample as a short prefix and every
    suffix as a column. The table must then be kept consistent.
    """
    checks_consistency: bool = attr.ib(default=True, init=False)

    def incorporate(self, table: ObservationTable, hypothesis: Hypothesis,
                    counterexample: Word):
        table.add_short_prefixes([counterexample])
        table.add_suffixes(e for e in suffixes(counterexample) if e != EMPTY)


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class RivestSchapireStrategy:
    """Rivest & Schapire's counterexample decomposition.

    Adds a single distinguishing suffix per counterexample. Short prefixes
    then always have pairwise distinct rows, so no consistency check is
    needed.
    """
    checks_consistency: bool = attr.ib(default=False, init=False)

    def incorporate(self, table: ObservationTable, hypothesis: Hypothesis,
                    counterexample: Word):
        table.add_counterexample(counterexample, hypothesis)


Strategy = Union[ClassicStrategy, RivestSchapireStrategy]


class Learner:
    """Owns an observation table and produces successive hypotheses.

    States: UNINITIALIZED -> READY (start) -> REFINING -> READY (refine).
    Deciding when to stop is left to the caller.
    """

    def __init__(self, alphabet: Iterable, oracle: OracleLike,
                 strategy: Optional[Strategy] = None):
        self.oracle = oracle_for(oracle)
        self.table = ObservationTable(alphabet, self.oracle)
        if strategy is None:
            strategy = RivestSchapireStrategy()
        self.strategy = strategy
        self.state = LearnerState.UNINITIALIZED
        self.hypothesis: Optional[Hypothesis] = None

    @property
    def alphabet(self):
        return self.table.alphabet

    @property
    def query_count(self) -> int:
        return self.table.query_count

    def _expect(self, state: LearnerState):
        if self.state != state:
            raise LearnerStateError(
                f"Learner is {self.state.value}, expected {state.value}."
            )

    def _complete_table(self):
        """Repair closedness (and consistency if required) to fixpoint."""
        while True:
            if self.table.make_closed() is not None:
                continue
            if not self.strategy.checks_consistency:
                break
            inconsistency = self.table.find_inconsistency()
            if inconsistency is None:
                break
            logger.debug("Rows of %s and %s split by %s.",
                         format_word(inconsistency.first),
                         format_word(inconsistency.second),
                         format_word(inconsistency.suffix))
            self.table.add_suffix(inconsistency.suffix)

    def start(self) -> Hypothesis:
        self._expect(LearnerState.UNINITIALIZED)
        snapshot = self.table.snapshot()
        try:
            self.table.initialize()
            self._complete_table()
            hypothesis = Hypothesis.from_table(self.table)
        except Exception:
            self.table.restore(snapshot)
            raise

        self.hypothesis = hypothesis
        self.state = LearnerState.READY
        logger.info("Initial hypothesis has %d states.", len(hypothesis))
        return hypothesis

    def is_counterexample(self, word: Iterable) -> bool:
        if self.hypothesis is None:
            raise LearnerStateError("Learner has no hypothesis yet.")
        word = self.alphabet.check(word)
        return self.table.membership(word) != self.hypothesis.accepts(word)

    def refine(self, counterexample: Iterable) -> Hypothesis:
        """Fold counterexample into the table and return the next hypothesis.

        Raises InvalidCounterexampleError if the current hypothesis already
        classifies counterexample correctly.
        """
        self._expect(LearnerState.READY)
        word = self.alphabet.check(counterexample)
        if not self.is_counterexample(word):
            raise InvalidCounterexampleError(
                f"{format_word(word)} is classified correctly by the "
                "current hypothesis."
            )

        self.state = LearnerState.REFINING
        snapshot = self.table.snapshot()
        hypothesis = self.hypothesis
        try:
            # A single pass may not fix the counterexample, but each pass
            # adds at least one state.
            while hypothesis.accepts(word) != self.table.membership(word):
                self.strategy.incorporate(self.table, hypothesis, word)
                self._complete_table()
                hypothesis = Hypothesis.from_table(self.table)
        except Exception:
            self.table.restore(snapshot)
            self.state = LearnerState.READY
            raise

        logger.info("Refined with %s: %d -> %d states.", format_word(word),
                    len(self.hypothesis), len(hypothesis))
        self.hypothesis = hypothesis
        self.state = LearnerState.READY
        return hypothesis


def classic_lstar(alphabet: Iterable, oracle: OracleLike) -> Learner:
    return Learner(alphabet, oracle, strategy=ClassicStrategy())


def rivest_schapire(alphabet: Iterable, oracle: OracleLike) -> Learner:
    return Learner(alphabet, oracle, strategy=RivestSchapireStrategy())


__all__ = ['Learner', 'LearnerState', 'LearnerStateError',
           'InvalidCounterexampleError', 'ClassicStrategy',
           'RivestSchapireStrategy', 'classic_lstar', 'rivest_schapire']
