"""Example systems under learning."""
from dfa import DFA, dict2dfa


def angluin_example() -> DFA:
    """Five state DFA over {a, b} from Angluin's seminal paper.

    s1 is initial, s2 and s4 are accepting.
    """
    return dict2dfa({
        's1': (False, {'a': 's2', 'b': 's4'}),
        's2': (True,  {'a': 's4', 'b': 's3'}),
        's3': (False, {'a': 's1', 'b': 's3'}),
        's4': (True,  {'a': 's5', 'b': 's4'}),
        's5': (False, {'a': 's2', 'b': 's5'}),
    }, start='s1')


def mod_counter(modulus: int, symbol='a', inputs=('a', 'b')) -> DFA:
    """Accept words whose number of `symbol`s is divisible by modulus."""
    if modulus < 1:
        raise ValueError("modulus must be positive.")
    return DFA(
        start=0,
        inputs=set(inputs),
        label=lambda s: s == 0,
        transition=lambda s, c: (s + (c == symbol)) % modulus,
    )


__all__ = ['angluin_example', 'mod_counter']
