import pytest

from dfa_lstar.learner import (InvalidCounterexampleError, Learner,
                               LearnerState, LearnerStateError,
                               RivestSchapireStrategy, classic_lstar,
                               rivest_schapire)
from dfa_lstar.oracles import FunctionOracle, OracleError
from dfa_lstar.targets import angluin_example
from dfa_lstar.words import MalformedWordError


LEARNERS = [classic_lstar, rivest_schapire]


def check_invariants(learner):
    table = learner.table
    assert table.is_closed()
    assert len(learner.hypothesis) == len(table.distinct_rows())
    if learner.strategy.checks_consistency:
        assert table.is_consistent()
    else:
        # Rivest-Schapire keeps short prefix rows pairwise distinct.
        assert len(table.distinct_rows()) == len(table.short_prefixes)


@pytest.mark.parametrize("make_learner", LEARNERS)
def test_state_machine(make_learner):
    learner = make_learner('ab', angluin_example())
    assert learner.state == LearnerState.UNINITIALIZED

    with pytest.raises(LearnerStateError):
        learner.refine('ba')
    with pytest.raises(LearnerStateError):
        learner.is_counterexample('ba')

    hypothesis = learner.start()
    assert learner.state == LearnerState.READY
    assert len(hypothesis) == 2
    check_invariants(learner)

    with pytest.raises(LearnerStateError):
        learner.start()


@pytest.mark.parametrize("make_learner", LEARNERS)
def test_invalid_counterexamples(make_learner):
    learner = make_learner('ab', angluin_example())
    hypothesis = learner.start()

    with pytest.raises(InvalidCounterexampleError):
        learner.refine('a')
    with pytest.raises(MalformedWordError):
        learner.refine('ca')
    assert learner.hypothesis is hypothesis
    assert learner.state == LearnerState.READY


def test_classic_refine():
    learner = classic_lstar('ab', angluin_example())
    learner.start()
    assert learner.is_counterexample('ba')

    hypothesis = learner.refine('ba')
    assert len(hypothesis) == 5
    assert not hypothesis.accepts('ba')
    assert learner.query_count == 23
    check_invariants(learner)


def test_rivest_schapire_refine():
    learner = rivest_schapire('ab', angluin_example())
    learner.start()

    hypothesis = learner.refine('ba')
    assert learner.table.suffixes == [(), ('a',)]
    assert len(hypothesis) == 4
    assert not hypothesis.accepts('ba')
    check_invariants(learner)

    assert learner.is_counterexample('bab')
    hypothesis = learner.refine('bab')
    assert len(hypothesis) == 5
    assert learner.query_count == 23
    check_invariants(learner)


@pytest.mark.parametrize("make_learner", LEARNERS)
def test_refine_adds_states(make_learner):
    target = angluin_example()
    learner = make_learner('ab', target)
    sizes = [len(learner.start())]
    for word in ['ba', 'bab', 'abab', 'bbaa']:
        if learner.is_counterexample(word):
            sizes.append(len(learner.refine(word)))
            assert learner.hypothesis.accepts(word) == target.label(word)
    assert sizes == sorted(set(sizes))


def test_oracle_failure_rolls_back():
    target = angluin_example()
    failing = {('a', 'b', 'b')}

    def answer(word):
        if tuple(word) in failing:
            raise ConnectionError("reset by peer")
        return bool(target.label(word))

    learner = rivest_schapire('ab', FunctionOracle(answer))
    hypothesis = learner.start()
    snapshot = learner.table.snapshot()

    with pytest.raises(OracleError):
        learner.refine('ba')
    assert learner.table.snapshot() == snapshot
    assert learner.hypothesis is hypothesis
    assert learner.state == LearnerState.READY

    failing.clear()
    assert len(learner.refine('ba')) == 4


def test_default_strategy():
    learner = Learner('ab', angluin_example())
    assert learner.strategy == RivestSchapireStrategy()
    assert not learner.strategy.checks_consistency
    assert classic_lstar('ab', angluin_example()).strategy.checks_consistency
