import random

from gevnet.load_balance import least_connection, round_robin


class _Loop:
    def __init__(self, count):
        self._count = count

    def connection_count(self):
        return self._count


def test_least_connection():
    rng = random.Random(7)
    n = 100
    counts = [rng.randrange(n) for _ in range(n)]
    loops = [_Loop(c) for c in counts]
    strategy = least_connection()
    for _ in range(n):
        assert strategy(loops).connection_count() == min(counts)


def test_least_connection_prefers_first_of_equal():
    loops = [_Loop(5), _Loop(3), _Loop(9), _Loop(3)]
    assert least_connection()(loops) is loops[1]


def test_round_robin():
    n = 100
    loops = [_Loop(i) for i in range(n)]
    strategy = round_robin()
    for i in range(n):
        assert strategy(loops).connection_count() == i


def test_round_robin_wraps_around():
    loops = [_Loop(0), _Loop(1), _Loop(2)]
    strategy = round_robin()
    picked = [strategy(loops) for _ in range(7)]
    assert picked == [loops[0], loops[1], loops[2], loops[0], loops[1], loops[2], loops[0]]