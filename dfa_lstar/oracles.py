"""Membership oracles.

An oracle answers "is this word accepted by the system under learning?".
Answers must be a pure function of the word. Oracles do not retry: if the
system cannot answer, an OracleError is raised and the current round is
abandoned by the caller.
"""
from __future__ import annotations

from typing import Any, Callable, Iterable, Union

import attr
from dfa import DFA

from dfa_lstar.words import MalformedWordError, Word, format_word


class OracleError(RuntimeError):
    """The oracle could not answer a query."""


class MembershipOracle:
    """Base class for membership oracles."""

    def query(self, word: Word) -> bool:
        raise NotImplementedError

    def query_batch(self, words: Iterable[Word]) -> list[bool]:
        """Answer words in order.

        Queries in a batch are independent of each other, so subclasses
        may dispatch them concurrently.
        """
        return [self.query(w) for w in words]

    def __call__(self, word: Word) -> bool:
        return self.query(tuple(word))


@attr.s(auto_detect=True, auto_attribs=True)
class SimulatorOracle(MembershipOracle):
    """Answers queries by running a known DFA."""
    target: DFA

    def query(self, word: Word) -> bool:
        word = tuple(word)
        unknown = [s for s in word if s not in self.target.inputs]
        if unknown:
            raise MalformedWordError(
                f"{format_word(word)} uses symbols {unknown} outside the "
                "inputs of the simulated DFA."
            )
        return bool(self.target.label(word))


@attr.s(auto_detect=True, auto_attribs=True)
class FunctionOracle(MembershipOracle):
    """Adapts a callable taking a word and returning True/False."""
    func: Callable[[Word], Any]

    def query(self, word: Word) -> bool:
        word = tuple(word)
        try:
            label = self.func(word)
        except (MalformedWordError, OracleError):
            raise
        except Exception as err:
            raise OracleError(
                f"Oracle failed on {format_word(word)}: {err!r}"
            ) from err

        if not isinstance(label, bool):
            raise OracleError(
                f"Oracle returned {label!r} for {format_word(word)}; "
                "expected True or False."
            )
        return label


@attr.s(auto_detect=True, auto_attribs=True)
class CounterOracle(MembershipOracle):
    """Counts queries (and queried symbols) forwarded to a delegate."""
    delegate: MembershipOracle
    name: str = "membership queries"
    queries: int = 0
    symbols: int = 0

    def query(self, word: Word) -> bool:
        label = self.delegate.query(word)
        self.queries += 1
        self.symbols += len(word)
        return label

    def query_batch(self, words: Iterable[Word]) -> list[bool]:
        words = list(words)
        labels = self.delegate.query_batch(words)
        self.queries += len(words)
        self.symbols += sum(map(len, words))
        return labels

    def reset(self):
        self.queries = self.symbols = 0

    def summary(self) -> str:
        return f"{self.name}: queries={self.queries}, symbols={self.symbols}"


OracleLike = Union[MembershipOracle, DFA, Callable[[Word], Any]]


def oracle_for(obj: OracleLike) -> MembershipOracle:
    """Wrap a DFA or a callable as a MembershipOracle."""
    if isinstance(obj, MembershipOracle):
        return obj
    if isinstance(obj, DFA):
        return SimulatorOracle(obj)
    if callable(obj):
        return FunctionOracle(obj)
    raise ValueError(f"Cannot use {obj!r} as a membership oracle.")


__all__ = ['MembershipOracle', 'SimulatorOracle', 'FunctionOracle',
           'CounterOracle', 'OracleError', 'OracleLike', 'oracle_for']
