"""Hypothesis automata extracted from closed observation tables."""
from __future__ import annotations

from collections import deque
from typing import Any, Iterable, Optional

import attr
import funcy as fn
import networkx as nx
from dfa import DFA, dict2dfa

from dfa_lstar.table import ObservationTable
from dfa_lstar.words import EMPTY, Alphabet, Word, format_word


State = int


@attr.s(auto_detect=True, auto_attribs=True, frozen=True)
class Hypothesis:
    """Immutable DFA conjectured by a learner.

    States are 0..n-1, numbered in the insertion order of the short
    prefixes representing them; 0 is always the initial state.
    """
    alphabet: Alphabet
    accepting: frozenset[State]
    transitions: dict[tuple[State, Any], State] = attr.ib(hash=False)
    access_words: tuple[Word, ...]
    suffixes: tuple[Word, ...] = ()

    @property
    def states(self) -> range:
        return range(len(self.access_words))

    @property
    def initial(self) -> State:
        return 0

    def __len__(self) -> int:
        return len(self.access_words)

    @staticmethod
    def from_table(table: ObservationTable) -> Hypothesis:
        """One state per distinct short prefix row.

        Deterministic in the table's contents, so repeated extraction from
        an unchanged table yields equal hypotheses.
        """
        row2state, access = {}, []
        for u in table.short_prefixes:
            row = table.row(u)
            if row not in row2state:
                row2state[row] = len(access)
                access.append(u)

        transitions = {}
        for state, u in enumerate(access):
            for a in table.alphabet:
                row = table.row(u + (a,))
                if row not in row2state:
                    raise ValueError(
                        "Cannot extract hypothesis from unclosed table: "
                        f"row of {format_word(u + (a,))} has no short prefix."
                    )
                transitions[state, a] = row2state[row]

        eps = table.suffixes.index(EMPTY)
        accepting = frozenset(q for q, u in enumerate(access)
                              if table.row(u)[eps])
        return Hypothesis(alphabet=table.alphabet,
                          accepting=accepting,
                          transitions=transitions,
                          access_words=tuple(access),
                          suffixes=tuple(table.suffixes))

    # ------------------------- Simulation -----------------------------

    def transition(self, state: State, symbol) -> State:
        return self.transitions[state, symbol]

    def run(self, word: Iterable, start: Optional[State] = None) -> State:
        state = self.initial if start is None else start
        for symbol in self.alphabet.check(word):
            state = self.transitions[state, symbol]
        return state

    def accepts(self, word: Iterable) -> bool:
        return self.run(word) in self.accepting

    # ------------------------ Distinguishing --------------------------

    def distinguishing_suffix(self, state1: State,
                              state2: State) -> Optional[Word]:
        """Shortest word on which state1 and state2 disagree (BFS)."""
        queue, visited = deque([(state1, state2, EMPTY)]), {(state1, state2)}
        while queue:
            s1, s2, suffix = queue.popleft()
            if (s1 in self.accepting) != (s2 in self.accepting):
                return suffix
            for a in self.alphabet:
                pair = (self.transitions[s1, a], self.transitions[s2, a])
                if pair not in visited:
                    visited.add(pair)
                    queue.append((*pair, suffix + (a,)))
        return None  # States are equivalent.

    def characterizing_set(self) -> list[Word]:
        """Suffixes separating every pair of states.

        The table's suffixes already do this for extracted hypotheses.
        """
        if self.suffixes:
            return list(self.suffixes)
        found = [EMPTY]
        for s1 in self.states:
            for s2 in range(s1 + 1, len(self)):
                suffix = self.distinguishing_suffix(s1, s2)
                if suffix is not None:
                    found.append(suffix)
        return fn.ldistinct(found)

    def state_characterizing_set(self, state: State) -> list[Word]:
        """Part of the characterizing set separating state from the rest."""
        global_set = self.characterizing_set()
        local = []
        for other in self.states:
            if other == state:
                continue
            suffix = fn.first(
                e for e in global_set
                if self.accepts_from(state, e) != self.accepts_from(other, e)
            )
            if suffix is not None:
                local.append(suffix)
        return fn.ldistinct(local) or [EMPTY]

    def accepts_from(self, state: State, word: Iterable) -> bool:
        return self.run(word, start=state) in self.accepting

    # --------------------------- Export -------------------------------

    def to_dfa(self) -> DFA:
        """Convert to a `dfa.DFA` for printing/visualization tools."""
        dfa_dict = {
            q: (q in self.accepting,
                {a: self.transitions[q, a] for a in self.alphabet})
            for q in self.states
        }
        return dict2dfa(dfa_dict, start=self.initial)

    def to_graph(self) -> nx.MultiDiGraph:
        graph = nx.MultiDiGraph(start=self.initial)
        for q in self.states:
            graph.add_node(q, label=q in self.accepting,
                           access=self.access_words[q])
        for (q, a), target in self.transitions.items():
            graph.add_edge(q, target, key=self.alphabet.index(a), symbol=a)
        return graph

    def describe(self) -> str:
        lines = [f"Hypothesis with {len(self)} states "
                 f"over {len(self.alphabet)} symbols:"]
        for q in self.states:
            flag = "*" if q in self.accepting else " "
            edges = ", ".join(f"{format_word((a,))}->{self.transitions[q, a]}"
                              for a in self.alphabet)
            lines.append(f" {flag}{q} [{format_word(self.access_words[q])}]: "
                         f"{edges}")
        return "\n".join(lines)


__all__ = ['Hypothesis', 'State']
