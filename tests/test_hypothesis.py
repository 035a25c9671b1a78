import pytest

from dfa_lstar.hypothesis import Hypothesis
from dfa_lstar.oracles import SimulatorOracle
from dfa_lstar.table import ObservationTable
from dfa_lstar.targets import angluin_example
from dfa_lstar.words import Alphabet, MalformedWordError


def closed_table():
    table = ObservationTable('ab', SimulatorOracle(angluin_example()))
    table.initialize()
    while table.make_closed() is not None:
        pass
    return table


def mod3():
    """Counts a's modulo 3, built by hand without a table."""
    return Hypothesis(
        alphabet=Alphabet.from_symbols('ab'),
        accepting=frozenset({0}),
        transitions={(q, a): (q + (a == 'a')) % 3
                     for q in range(3) for a in 'ab'},
        access_words=((), ('a',), ('a', 'a')),
    )


def test_from_table():
    table = closed_table()
    hypothesis = Hypothesis.from_table(table)
    assert len(hypothesis) == len(table.distinct_rows()) == 2
    assert hypothesis.initial == 0
    assert hypothesis.access_words == ((), ('a',))
    assert hypothesis.accepting == {1}
    assert hypothesis.transitions == {
        (0, 'a'): 1, (0, 'b'): 1, (1, 'a'): 1, (1, 'b'): 0,
    }
    assert hypothesis.accepts('ba')
    assert not hypothesis.accepts('ab')

    # Access words reach the states they represent.
    for q, u in enumerate(hypothesis.access_words):
        assert hypothesis.run(u) == q
        assert hypothesis.accepts(u) == table.membership(u)


def test_extraction_is_deterministic():
    table = closed_table()
    assert Hypothesis.from_table(table) == Hypothesis.from_table(table)


def test_duplicate_rows_share_state():
    table = closed_table()
    table.add_short_prefixes(['b'])
    hypothesis = Hypothesis.from_table(table)
    assert len(hypothesis) == len(table.distinct_rows()) == 2


def test_unclosed_table():
    table = ObservationTable('ab', SimulatorOracle(angluin_example()))
    table.initialize()
    with pytest.raises(ValueError):
        Hypothesis.from_table(table)


def test_run_rejects_foreign_symbols():
    with pytest.raises(MalformedWordError):
        mod3().accepts('abc')


def test_distinguishing():
    hypothesis = mod3()
    assert hypothesis.accepts('babab')
    assert hypothesis.distinguishing_suffix(0, 1) == ()
    assert hypothesis.distinguishing_suffix(1, 2) == ('a',)
    assert hypothesis.distinguishing_suffix(1, 1) is None

    assert hypothesis.characterizing_set() == [(), ('a',)]
    assert hypothesis.state_characterizing_set(0) == [()]
    assert hypothesis.state_characterizing_set(1) == [(), ('a',)]


def test_table_suffixes_characterize():
    hypothesis = Hypothesis.from_table(closed_table())
    assert hypothesis.characterizing_set() == [()]
    assert hypothesis.state_characterizing_set(0) == [()]


def test_to_dfa():
    hypothesis = mod3()
    dfa = hypothesis.to_dfa()
    for word in hypothesis.alphabet.words(5):
        assert dfa.label(word) == hypothesis.accepts(word)


def test_to_graph():
    graph = mod3().to_graph()
    assert graph.graph['start'] == 0
    assert len(graph.nodes) == 3
    assert len(graph.edges) == 6
    assert graph.nodes[0]['label']
    assert graph.nodes[2]['access'] == ('a', 'a')
    symbols = {d['symbol'] for *_, d in graph.edges(1, data=True)}
    assert symbols == {'a', 'b'}

    # Parallel edges are keyed by the symbol's position in the alphabet.
    assert list(graph[1][2]) == [0]
    assert graph[1][1][1]['symbol'] == 'b'


def test_describe():
    lines = mod3().describe().splitlines()
    assert lines[0] == "Hypothesis with 3 states over 2 symbols:"
    assert lines[1] == " *0 [ε]: a->1, b->0"
    assert lines[3] == "  2 [aa]: a->0, b->2"
