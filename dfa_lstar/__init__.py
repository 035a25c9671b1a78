from dfa_lstar.words import Alphabet, MalformedWordError, Word, format_word
from dfa_lstar.oracles import (
    MembershipOracle,
    SimulatorOracle,
    FunctionOracle,
    CounterOracle,
    OracleError,
    oracle_for,
)
from dfa_lstar.table import ObservationTable, Inconsistency
from dfa_lstar.hypothesis import Hypothesis
from dfa_lstar.learner import (
    Learner,
    LearnerState,
    LearnerStateError,
    InvalidCounterexampleError,
    ClassicStrategy,
    RivestSchapireStrategy,
    classic_lstar,
    rivest_schapire,
)
from dfa_lstar.conformance import (
    ConformanceOracle,
    WMethodOracle,
    WpMethodOracle,
    state_cover,
    transition_cover,
)
from dfa_lstar.experiment import (
    Experiment,
    ExperimentState,
    ExperimentResult,
    ExperimentStatistics,
    Outcome,
    learn_dfa,
)
