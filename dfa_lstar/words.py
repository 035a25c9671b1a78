"""Alphabets and words over them.

Words are plain tuples of symbols. Anything iterable (e.g., a string) is
normalized with ``tuple(word)`` at the API boundary.
"""
from __future__ import annotations

from itertools import product
from typing import Any, Hashable, Iterable, Iterator

import attr
import funcy as fn
from bidict import bidict


Symbol = Hashable
Word = tuple[Any, ...]

EMPTY: Word = ()


class MalformedWordError(ValueError):
    """Raised when a word uses symbols outside the declared alphabet."""


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class Alphabet:
    """Finite, ordered set of symbols.

    The order is significant: it fixes the order in which transitions are
    enumerated in hypotheses and in which test words are generated.
    """
    symbols: tuple
    _index: bidict = attr.ib(eq=False, repr=False)

    @staticmethod
    def from_symbols(symbols: Iterable[Symbol]) -> Alphabet:
        if isinstance(symbols, Alphabet):
            return symbols
        symbols = tuple(symbols)
        if not symbols:
            raise ValueError("Alphabet must contain at least one symbol.")
        if None in symbols:
            raise ValueError("None not allowed in alphabet.")
        if len(set(symbols)) != len(symbols):
            dups = [s for s, n in fn.count_by(fn.identity, symbols).items()
                    if n > 1]
            raise ValueError(f"Duplicate symbols in alphabet: {dups}")
        return Alphabet(symbols, bidict(enumerate(symbols)).inv)

    def __len__(self) -> int:
        return len(self.symbols)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.symbols)

    def __contains__(self, symbol) -> bool:
        try:
            return symbol in self._index
        except TypeError:  # Unhashable.
            return False

    def index(self, symbol: Symbol) -> int:
        return self._index[symbol]

    def check(self, word: Iterable[Symbol]) -> Word:
        """Return word as a tuple or raise MalformedWordError."""
        word = tuple(word)
        unknown = [s for s in word if s not in self]
        if unknown:
            raise MalformedWordError(
                f"Symbols {fn.ldistinct(unknown)} of word "
                f"{format_word(word)} are not in alphabet {self.symbols}."
            )
        return word

    def words(self, max_length: int) -> Iterator[Word]:
        """All words of length 0..max_length in length-lexicographic order."""
        for n in range(max_length + 1):
            yield from product(self.symbols, repeat=n)


def prefixes(word: Word) -> list[Word]:
    """All prefixes of word, shortest first (including the empty word)."""
    return [word[:i] for i in range(len(word) + 1)]


def suffixes(word: Word) -> list[Word]:
    """All suffixes of word, shortest first (including the empty word)."""
    return [word[i:] for i in range(len(word), -1, -1)]


def format_word(word: Iterable[Symbol]) -> str:
    word = tuple(word)
    if not word:
        return "ε"
    if all(isinstance(s, str) and len(s) == 1 for s in word):
        return "".join(word)
    return " ".join(map(str, word))


__all__ = ['Alphabet', 'MalformedWordError', 'Symbol', 'Word', 'EMPTY',
           'prefixes', 'suffixes', 'format_word']
