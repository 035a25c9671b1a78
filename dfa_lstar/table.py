"""Observation table for L*-style learning.

Rows are indexed by prefixes, split into short prefixes (candidate states)
and long prefixes (one symbol extensions of short prefixes). Columns are
indexed by suffixes, starting with the empty word. Cell (u, e) holds the
membership of u·e.

See Angluin, "Learning regular sets from queries and counterexamples" and
Rivest & Schapire, "Inference of finite automata using homing sequences".
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

import attr
import funcy as fn
from more_itertools import unique_everseen

from dfa_lstar.oracles import MembershipOracle
from dfa_lstar.words import EMPTY, Alphabet, Word, format_word, prefixes

if TYPE_CHECKING:
    from dfa_lstar.hypothesis import Hypothesis


logger = logging.getLogger(__name__)

Row = tuple[bool, ...]


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class Inconsistency:
    """Short prefixes with equal rows whose extensions by symbol differ.

    The distinguishing suffix is symbol·e where e is the first column on
    which the extended rows disagree.
    """
    first: Word
    second: Word
    symbol: object
    suffix: Word


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class TableSnapshot:
    short_prefixes: tuple[Word, ...]
    long_prefixes: tuple[Word, ...]
    suffixes: tuple[Word, ...]


class ObservationTable:
    """Observation table with a permanent membership cache.

    Every mutating operation queries all new cells as a single batch and
    only then commits the new rows/columns, so a failing oracle never
    leaves partially filled rows behind.
    """

    def __init__(self, alphabet: Iterable, oracle: MembershipOracle):
        self.alphabet = Alphabet.from_symbols(alphabet)
        self.oracle = oracle

        self.short_prefixes: list[Word] = []
        self.long_prefixes: list[Word] = []
        self.suffixes: list[Word] = []

        self._cache: dict[Word, bool] = {}
        self.query_count = 0

    @property
    def initialized(self) -> bool:
        return bool(self.suffixes)

    @property
    def prefixes(self) -> list[Word]:
        return self.short_prefixes + self.long_prefixes

    def _assert_initialized(self):
        if not self.initialized:
            raise ValueError("Observation table has not been initialized.")

    # ----------------------- Membership cache -------------------------

    def _fill(self, words: Iterable[Word]):
        """Query and cache every word not seen before."""
        missing = [w for w in unique_everseen(words) if w not in self._cache]
        if not missing:
            return
        labels = self.oracle.query_batch(missing)
        if len(labels) != len(missing):
            raise ValueError("Oracle returned wrong number of answers.")
        self.query_count += len(missing)
        self._cache.update(zip(missing, labels))

    def membership(self, word: Word) -> bool:
        """Cached membership query for an arbitrary word."""
        word = tuple(word)
        self._fill([word])
        return self._cache[word]

    def cell(self, prefix: Word, suffix: Word) -> bool:
        return self._cache[prefix + suffix]

    def row(self, prefix: Word) -> Row:
        return tuple(self._cache[prefix + e] for e in self.suffixes)

    def distinct_rows(self) -> list[Row]:
        """Distinct short prefix rows in insertion order."""
        return fn.ldistinct(map(self.row, self.short_prefixes))

    # ------------------------ Table growth ----------------------------

    def initialize(self):
        if self.initialized:
            raise ValueError("Observation table already initialized.")

        long = [(a,) for a in self.alphabet]
        self._fill(EMPTY + e for e in [EMPTY] + long)

        self.short_prefixes = [EMPTY]
        self.long_prefixes = long
        self.suffixes = [EMPTY]
        logger.debug("Initialized table over %d symbols.", len(self.alphabet))

    def add_suffix(self, suffix: Iterable) -> bool:
        """Add a column. Returns False if it is already present."""
        return bool(self.add_suffixes([suffix]))

    def add_suffixes(self, suffixes: Iterable[Iterable]) -> list[Word]:
        """Add columns, skipping duplicates. Returns the added suffixes."""
        self._assert_initialized()
        known = set(self.suffixes)
        new = [e for e in unique_everseen(map(self.alphabet.check, suffixes))
               if e not in known]
        if not new:
            return []

        self._fill(u + e for u in self.prefixes for e in new)
        self.suffixes.extend(new)
        logger.debug("Added suffixes %s.", fn.lmap(format_word, new))
        return new

    def add_short_prefixes(self, words: Iterable[Iterable]) -> list[Word]:
        """Make words (and their prefixes) short prefixes.

        Returns the newly added short prefixes in insertion order.
        """
        self._assert_initialized()
        short, long = list(self.short_prefixes), list(self.long_prefixes)
        known = set(short) | set(long)

        added = []
        for word in map(self.alphabet.check, words):
            for u in prefixes(word):
                if u in short:
                    continue
                if u in long:
                    long.remove(u)
                short.append(u)
                added.append(u)
                for a in self.alphabet:
                    if u + (a,) not in known:
                        known.add(u + (a,))
                        long.append(u + (a,))
            known |= set(added)

        if not added:
            return []
        new_rows = [u for u in short + long if u not in self.short_prefixes
                    and u not in self.long_prefixes]
        self._fill(u + e for u in new_rows for e in self.suffixes)
        self.short_prefixes, self.long_prefixes = short, long
        logger.debug("Added short prefixes %s.", fn.lmap(format_word, added))
        return added

    # -------------------------- Closedness ----------------------------

    def find_unclosed_row(self) -> Optional[Word]:
        """First long prefix whose row matches no short prefix row."""
        self._assert_initialized()
        short_rows = set(map(self.row, self.short_prefixes))
        return fn.first(u for u in self.long_prefixes
                        if self.row(u) not in short_rows)

    def is_closed(self) -> bool:
        return self.find_unclosed_row() is None

    def make_closed(self) -> Optional[Word]:
        """Promote one unclosed long prefix to a short prefix.

        Returns the promoted prefix or None if the table is already closed.
        Callers loop until None to reach the fixpoint.
        """
        prefix = self.find_unclosed_row()
        if prefix is None:
            return None

        known = set(self.prefixes)
        new_long = [prefix + (a,) for a in self.alphabet
                    if prefix + (a,) not in known]
        self._fill(u + e for u in new_long for e in self.suffixes)

        self.long_prefixes.remove(prefix)
        self.short_prefixes.append(prefix)
        self.long_prefixes.extend(new_long)
        logger.debug("Promoted %s to short prefix.", format_word(prefix))
        return prefix

    # -------------------------- Consistency ---------------------------

    def find_inconsistency(self) -> Optional[Inconsistency]:
        self._assert_initialized()
        by_row = fn.group_by(self.row, self.short_prefixes)
        for group in by_row.values():
            first = group[0]
            for second in group[1:]:
                for a in self.alphabet:
                    row1 = self.row(first + (a,))
                    row2 = self.row(second + (a,))
                    if row1 == row2:
                        continue
                    e = fn.first(e for e, x, y
                                 in zip(self.suffixes, row1, row2)
                                 if x != y)
                    return Inconsistency(first, second, a, (a,) + e)
        return None

    def is_consistent(self) -> bool:
        return self.find_inconsistency() is None

    # ----------------------- Counterexamples --------------------------

    def add_counterexample(self, word: Iterable,
                           hypothesis: Hypothesis) -> Optional[Word]:
        """Rivest-Schapire counterexample processing.

        Binary search for an index i such that replacing the prefix
        word[:i] (resp. word[:i+1]) by the access word of the hypothesis
        state it reaches flips the membership answer. The remaining suffix
        word[i+1:] then separates the long prefix access(q_i)·word[i] from
        the short prefix access(q_{i+1}) and is added as a single column.

        Returns the added suffix, or None if it was already a column.
        """
        self._assert_initialized()
        word = self.alphabet.check(word)

        def alpha(i: int) -> bool:
            state = hypothesis.run(word[:i])
            return self.membership(hypothesis.access_words[state] + word[i:])

        expected = alpha(0)
        if expected == alpha(len(word)):
            raise ValueError(
                f"{format_word(word)} is not a counterexample for hypothesis."
            )

        lo, hi = 0, len(word)  # Invariant: alpha(lo) != alpha(hi).
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if alpha(mid) == expected:
                lo = mid
            else:
                hi = mid

        suffix = word[lo + 1:]
        logger.debug("Decomposed %s at %d, suffix %s.",
                     format_word(word), lo, format_word(suffix))
        return suffix if self.add_suffix(suffix) else None

    # ------------------------ Snapshots/export ------------------------

    def snapshot(self) -> TableSnapshot:
        return TableSnapshot(tuple(self.short_prefixes),
                             tuple(self.long_prefixes),
                             tuple(self.suffixes))

    def restore(self, snapshot: TableSnapshot):
        """Roll structure back. Cached answers stay valid and are kept."""
        self.short_prefixes = list(snapshot.short_prefixes)
        self.long_prefixes = list(snapshot.long_prefixes)
        self.suffixes = list(snapshot.suffixes)

    def to_ascii(self) -> str:
        """Render the table as a text grid; '+' accept, '-' reject."""
        self._assert_initialized()
        header = [""] + fn.lmap(format_word, self.suffixes)
        lines = [[format_word(u)] + ['+' if x else '-' for x in self.row(u)]
                 for u in self.prefixes]
        widths = [max(len(r[i]) for r in [header] + lines)
                  for i in range(len(header))]

        def fmt(cells):
            padded = (c.ljust(w) for c, w in zip(cells, widths))
            return "| " + " | ".join(padded) + " |"

        sep = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
        out = [sep, fmt(header), sep.replace("-", "=")]
        out.extend(fmt(r) for r in lines[:len(self.short_prefixes)])
        out.append(sep)
        out.extend(fmt(r) for r in lines[len(self.short_prefixes):])
        if self.long_prefixes:
            out.append(sep)
        return "\n".join(out)

    def __str__(self) -> str:
        return self.to_ascii() if self.initialized else "<empty table>"

    def statistics(self) -> dict[str, int]:
        return {
            "short_prefixes": len(self.short_prefixes),
            "long_prefixes": len(self.long_prefixes),
            "suffixes": len(self.suffixes),
            "cached_words": len(self._cache),
            "queries": self.query_count,
        }


__all__ = ['ObservationTable', 'Inconsistency', 'TableSnapshot', 'Row']
