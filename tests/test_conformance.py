import pytest

from dfa_lstar.conformance import (WMethodOracle, WpMethodOracle,
                                   middle_parts, state_cover,
                                   transition_cover)
from dfa_lstar.hypothesis import Hypothesis
from dfa_lstar.learner import rivest_schapire
from dfa_lstar.oracles import SimulatorOracle
from dfa_lstar.table import ObservationTable
from dfa_lstar.targets import angluin_example, mod_counter
from dfa_lstar.words import Alphabet


TESTERS = [WMethodOracle, WpMethodOracle]


def initial_hypothesis():
    table = ObservationTable('ab', SimulatorOracle(angluin_example()))
    table.initialize()
    while table.make_closed() is not None:
        pass
    return Hypothesis.from_table(table)


def final_hypothesis(target):
    learner = rivest_schapire('ab', target)
    hypothesis = learner.start()
    tester = WMethodOracle(target, depth=4)
    while True:
        ce = tester.find_counterexample(hypothesis)
        if ce is None:
            return hypothesis
        hypothesis = learner.refine(ce)


def test_covers():
    hypothesis = initial_hypothesis()
    assert state_cover(hypothesis) == {0: (), 1: ('a',)}
    assert transition_cover(hypothesis) == [
        (), ('a',), ('b',), ('a', 'a'), ('a', 'b')
    ]


def test_middle_parts():
    alphabet = Alphabet.from_symbols('ab')
    assert middle_parts(alphabet, 0) == [()]
    assert len(middle_parts(alphabet, 2)) == 7
    with pytest.raises(ValueError):
        middle_parts(alphabet, -1)


@pytest.mark.parametrize("tester", TESTERS)
def test_depth_validation(tester):
    with pytest.raises(ValueError):
        tester(angluin_example(), depth=-1)


def test_depth_zero():
    words = WMethodOracle(angluin_example(), depth=0) \
        .test_words(initial_hypothesis())
    assert words == [(), ('a',), ('b',), ('a', 'a'), ('a', 'b')]


@pytest.mark.parametrize("tester", TESTERS)
def test_finds_shortest_counterexample(tester):
    oracle = tester(angluin_example(), depth=4)
    assert oracle.find_counterexample(initial_hypothesis()) == ('b', 'a')
    assert oracle.query_count == 6


@pytest.mark.parametrize("tester", TESTERS)
def test_test_words_sorted_and_unique(tester):
    words = tester(angluin_example(), depth=3) \
        .test_words(initial_hypothesis())
    assert len(words) == len(set(words))
    assert [len(w) for w in words] == sorted(len(w) for w in words)


@pytest.mark.parametrize("target", [angluin_example(), mod_counter(3)])
@pytest.mark.parametrize("tester", TESTERS)
def test_no_counterexample_means_agreement(tester, target):
    hypothesis = final_hypothesis(target)
    oracle = tester(target, depth=3)
    assert oracle.find_counterexample(hypothesis) is None
    for word in oracle.test_words(hypothesis):
        assert hypothesis.accepts(word) == target.label(word)


def test_wp_words_within_w_words():
    for hypothesis in [initial_hypothesis(),
                       final_hypothesis(angluin_example())]:
        w_words = WMethodOracle(angluin_example()).test_words(hypothesis)
        wp_words = WpMethodOracle(angluin_example()).test_words(hypothesis)
        assert set(wp_words) <= set(w_words)
