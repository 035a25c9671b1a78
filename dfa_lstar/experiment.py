"""Experiment driver alternating hypothesis construction and testing."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Iterable, Literal, Optional

import attr

from dfa_lstar.conformance import (ConformanceOracle, WMethodOracle,
                                   WpMethodOracle)
from dfa_lstar.hypothesis import Hypothesis
from dfa_lstar.learner import Learner, classic_lstar, rivest_schapire
from dfa_lstar.oracles import CounterOracle, OracleLike, oracle_for
from dfa_lstar.words import Word, format_word


logger = logging.getLogger(__name__)

Algorithm = Literal['classic', 'rivest_schapire']
Method = Literal['w', 'wp']


class ExperimentState(Enum):
    START = "start"
    LEARNING = "learning"
    TESTING = "testing"
    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget exhausted"


class Outcome(Enum):
    CONVERGED = "converged"                  # No counterexample up to depth.
    BUDGET_EXHAUSTED = "budget exhausted"    # Stopped by max_rounds/queries.


@attr.s(auto_detect=True, auto_attribs=True)
class ExperimentStatistics:
    """Counters and timings of one experiment."""
    rounds: int = 0
    learner_queries: int = 0
    conformance_queries: int = 0
    counterexamples: list[Word] = attr.ib(factory=list)
    durations: dict[str, float] = attr.ib(factory=dict)

    @property
    def queries(self) -> int:
        return self.learner_queries + self.conformance_queries

    @contextmanager
    def profile(self, phase: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.durations[phase] = self.durations.get(phase, 0.0) + elapsed

    def summary(self) -> str:
        lines = [
            f"rounds: {self.rounds}",
            f"membership queries: learner={self.learner_queries}, "
            f"conformance={self.conformance_queries}, total={self.queries}",
            f"counterexamples: {len(self.counterexamples)}",
        ]
        lines.extend(f"{phase}: {secs:.3f}s"
                     for phase, secs in self.durations.items())
        return "\n".join(lines)


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class ExperimentResult:
    hypothesis: Hypothesis
    outcome: Outcome
    statistics: ExperimentStatistics

    @property
    def converged(self) -> bool:
        return self.outcome == Outcome.CONVERGED


class Experiment:
    """Runs a learner against a conformance oracle until no counterexample.

    Without limits the loop is unbounded, as in Angluin's algorithm; an
    oracle that keeps producing counterexamples keeps it running. Setting
    max_rounds and/or max_queries stops it with BUDGET_EXHAUSTED instead of
    refining once a limit is reached; the last hypothesis is returned along
    with the counterexample that refuted it.
    """

    def __init__(self, learner: Learner, tester: ConformanceOracle,
                 max_rounds: Optional[int] = None,
                 max_queries: Optional[int] = None,
                 log_models: bool = False):
        for name, val in [('max_rounds', max_rounds),
                          ('max_queries', max_queries)]:
            if val is not None and val < 1:
                raise ValueError(f"{name} must be positive or None.")

        self.learner = learner
        self.tester = tester
        self.max_rounds = max_rounds
        self.max_queries = max_queries
        self.log_models = log_models

        self.state = ExperimentState.START
        self.statistics = ExperimentStatistics()
        self.hypothesis: Optional[Hypothesis] = None

    def _sync_counts(self):
        self.statistics.learner_queries = self.learner.query_count
        self.statistics.conformance_queries = self.tester.query_count

    def _budget_exhausted(self) -> bool:
        stats = self.statistics
        if self.max_rounds is not None and stats.rounds >= self.max_rounds:
            return True
        return self.max_queries is not None \
            and stats.queries >= self.max_queries

    def _new_hypothesis(self, hypothesis: Hypothesis):
        self.hypothesis = hypothesis
        self.statistics.rounds += 1
        self._sync_counts()
        logger.info("Round %d: hypothesis with %d states.",
                    self.statistics.rounds, len(hypothesis))
        if self.log_models:
            logger.debug("%s\n%s", hypothesis.describe(),
                         self.learner.table.to_ascii())

    def _finish(self, state: ExperimentState,
                outcome: Outcome) -> ExperimentResult:
        self.state = state
        self._sync_counts()
        logger.info("Experiment %s after %d rounds, %d queries.",
                    outcome.value, self.statistics.rounds,
                    self.statistics.queries)
        return ExperimentResult(self.hypothesis, outcome, self.statistics)

    def run(self) -> ExperimentResult:
        if self.state != ExperimentState.START:
            raise RuntimeError("Experiment has already been run.")

        self.state = ExperimentState.LEARNING
        with self.statistics.profile("learning"):
            self._new_hypothesis(self.learner.start())

        while True:
            self.state = ExperimentState.TESTING
            with self.statistics.profile("testing"):
                counterexample = self.tester.find_counterexample(
                    self.hypothesis)
            self._sync_counts()

            if counterexample is None:
                return self._finish(ExperimentState.CONVERGED,
                                    Outcome.CONVERGED)

            self.statistics.counterexamples.append(counterexample)
            if self._budget_exhausted():
                return self._finish(ExperimentState.BUDGET_EXHAUSTED,
                                    Outcome.BUDGET_EXHAUSTED)

            self.state = ExperimentState.LEARNING
            logger.info("Refining with %s.", format_word(counterexample))
            with self.statistics.profile("learning"):
                self._new_hypothesis(self.learner.refine(counterexample))


def learn_dfa(alphabet: Iterable,
              oracle: OracleLike,
              algorithm: Algorithm = "rivest_schapire",
              method: Method = "wp",
              depth: int = 4,
              max_rounds: Optional[int] = None,
              max_queries: Optional[int] = None,
              log_models: bool = False) -> ExperimentResult:
    """Learn a DFA for the language answered by oracle.

    Inputs:
      - alphabet: Ordered symbols of the system under learning.
      - oracle: A `dfa.DFA`, a callable word -> bool or a MembershipOracle.
          Membership and conformance queries share one query counter.
      - algorithm: 'classic' (Angluin) or 'rivest_schapire'.
      - method: 'w' or 'wp' conformance testing.
      - depth: Length bound of the exhaustively explored middle part.
      - max_rounds, max_queries: Optional budget (None = unbounded).
      - log_models: Log every hypothesis and table at DEBUG level.

    Returns:
      An ExperimentResult with the final hypothesis.
    """
    learners = {'classic': classic_lstar, 'rivest_schapire': rivest_schapire}
    testers = {'w': WMethodOracle, 'wp': WpMethodOracle}
    if algorithm not in learners:
        raise ValueError(f"Unknown algorithm {algorithm!r}.")
    if method not in testers:
        raise ValueError(f"Unknown conformance method {method!r}.")

    counter = CounterOracle(oracle_for(oracle))
    experiment = Experiment(learners[algorithm](alphabet, counter),
                            testers[method](counter, depth=depth),
                            max_rounds=max_rounds,
                            max_queries=max_queries,
                            log_models=log_models)
    result = experiment.run()
    logger.info(counter.summary())
    return result


__all__ = ['Experiment', 'ExperimentState', 'ExperimentResult',
           'ExperimentStatistics', 'Outcome', 'learn_dfa',
           'Algorithm', 'Method']
