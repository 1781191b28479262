import aenets
import numpy as np
import pytest

import util as u

from aenets import scoring


@pytest.fixture
def net():
    return aenets.Autoencoder(u.AE_LAYERS)


def test_score(net):
    ranking = scoring.score(net, u.INPUTS)
    assert len(ranking) == u.NUM_EXAMPLES
    assert sorted(i for i, _ in ranking) == list(range(u.NUM_EXAMPLES))
    errs = [e for _, e in ranking]
    assert errs == sorted(errs, reverse=True)
    expected = net.reconstruction_error(u.INPUTS)
    for i, e in ranking:
        assert isinstance(i, int)
        assert np.isclose(e, expected[i])


def test_ties_keep_order():
    class Fixed(object):
        def reconstruction_error(self, x):
            return np.array([0.5, 2., 0.1, 2., 2., 0.7])

    ranking = scoring.score(Fixed(), np.zeros((6, 3)))
    assert [i for i, _ in ranking] == [1, 3, 4, 5, 0, 2]


def test_top_k(net):
    first = scoring.top_k(net, u.INPUTS, 5)
    assert len(first) == 5
    assert first == scoring.score(net, u.INPUTS)[:5]
    assert scoring.top_k(net, u.INPUTS, 5) == first
    assert scoring.top_k(net, u.INPUTS, 0) == []
    assert len(scoring.top_k(net, u.INPUTS, 1000)) == u.NUM_EXAMPLES


def test_top_k_negative(net):
    with pytest.raises(aenets.util.ConfigurationError):
        scoring.top_k(net, u.INPUTS, -1)


def test_finds_outliers():
    normal = u.low_rank(200, 20, rank=2)
    net = aenets.Autoencoder.build(20, hidden=(6, 2))
    net.train(normal, epochs=30, batch_size=20, learning_rate=0.05)
    rng = np.random.RandomState(9)
    outliers = 5 * rng.randn(3, 20)
    data = np.vstack([normal[:50], outliers])
    worst = [i for i, _ in scoring.top_k(net, data, 3)]
    assert sorted(worst) == [50, 51, 52]
