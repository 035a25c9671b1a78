import logging

import networkx as nx

from dfa_lstar import (CounterOracle, Experiment, SimulatorOracle,
                       WpMethodOracle, classic_lstar, rivest_schapire)
from dfa_lstar.targets import angluin_example


def run(make_learner, depth: int = 4) -> str:
    """Learn Angluin's example and return the report as text."""
    target = angluin_example()
    sigma = ['a', 'b']

    counter = CounterOracle(SimulatorOracle(target))
    learner = make_learner(sigma, counter)
    experiment = Experiment(learner, WpMethodOracle(counter, depth=depth),
                            log_models=True)
    result = experiment.run()
    hypothesis = result.hypothesis

    lines = [f"== {make_learner.__name__} ==",
             result.statistics.summary(),
             counter.summary(),
             f"States: {len(hypothesis)}",
             f"Sigma: {len(hypothesis.alphabet)}",
             "",
             "Model:"]
    lines.extend(nx.generate_edgelist(hypothesis.to_graph(),
                                      data=['symbol']))
    lines.extend(["", "Final observation table:",
                  learner.table.to_ascii()])
    return "\n".join(lines)


def main():
    for make_learner in [classic_lstar, rivest_schapire]:
        print(run(make_learner))
        print()


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG)
    main()
