import aenets
import numpy as np
import pytest

import util as u

from aenets import corruption


def nonzero(n, rows=None, seed=3):
    rng = np.random.RandomState(seed)
    shape = (n, ) if rows is None else (rows, n)
    return 1 + rng.rand(*shape)


class TestOnOff:
    @pytest.mark.parametrize('rate, n, expected', [
        (0.3, 10, 3),
        (0.3, 7, 2),
        (0.3, 784, 235),
        (0.5, 1, 0),
        (0.29, 100, 29),
        (0., 20, 0),
        (1., 20, 20),
    ])
    def test_count(self, rate, n, expected):
        corrupt = corruption.build('onoff', rate=rate, rng=1)
        y = corrupt(nonzero(n))
        assert (y == 0).sum() == expected

    def test_rows(self):
        corrupt = corruption.build('onoff', rate=0.25, rng=1)
        y, mask = corrupt.apply(nonzero(40, rows=6))
        assert mask.shape == (6, 40)
        assert list((y == 0).sum(axis=1)) == [10] * 6
        assert list(mask.sum(axis=1)) == [10] * 6
        # rows are corrupted independently.
        assert len(set(tuple(np.where(m)[0]) for m in mask)) > 1

    def test_unchanged_elsewhere(self):
        x = nonzero(50)
        y, mask = corruption.build('dropout', rate=0.4, rng=1).apply(x)
        assert np.allclose(y[~mask], x[~mask])
        assert np.allclose(y[mask], 0)

    def test_copy(self):
        x = nonzero(20)
        orig = x.copy()
        corruption.build('onoff', rate=0.5, rng=1)(x)
        assert np.allclose(x, orig)

    def test_seeded(self):
        x = nonzero(30, rows=4)
        a = corruption.build('onoff', rate=0.3, rng=5)(x)
        b = corruption.build('onoff', rate=0.3, rng=5)(x)
        c = corruption.build('onoff', rate=0.3, rng=6)(x)
        assert np.allclose(a, b)
        assert not np.allclose(a, c)


class TestGaussian:
    def test_range(self):
        corrupt = corruption.build(
            'gaussian', rate=0.3, rng=1, mean=128, std=200)
        x = np.full((5, 100), 7.)
        y, mask = corrupt.apply(x)
        assert list(mask.sum(axis=1)) == [30] * 5
        assert y.min() >= 0 and y.max() <= 255
        assert np.allclose(y, np.rint(y))
        assert np.allclose(y[~mask], 7)

    def test_fit(self):
        corrupt = corruption.build('gaussian', rate=0.5, data=u.PIXELS)
        assert np.isclose(corrupt.mean, u.PIXELS.mean())
        assert np.isclose(corrupt.std, u.PIXELS.std())

    def test_fixed(self):
        corrupt = corruption.build(
            'gaussian', rate=0.5, mean=10, std=1, data=u.PIXELS)
        assert corrupt.mean == 10
        assert corrupt.std == 1

    def test_bounds(self):
        corrupt = corruption.build(
            'gaussian', rate=1, rng=1, mean=0, std=5, low=-1, high=1)
        y = corrupt(np.zeros(200))
        assert set(np.unique(y)) <= {-1., 0., 1.}
        with pytest.raises(aenets.util.ConfigurationError):
            corruption.build('gaussian', low=3, high=2)

    def test_step(self):
        corrupt = corruption.build(
            'gaussian', rate=1, rng=1, mean=0.5, std=0.3, low=0, high=1,
            step=1 / 255)
        y = corrupt(np.zeros(500))
        assert np.allclose(y * 255, np.rint(y * 255))
        assert len(np.unique(y)) > 10
        assert y.min() >= 0 and y.max() <= 1
        with pytest.raises(aenets.util.ConfigurationError):
            corruption.build('gaussian', step=-1)

    def test_no_step(self):
        corrupt = corruption.build(
            'gaussian', rate=1, rng=1, mean=100, std=10, step=0)
        y = corrupt(np.zeros(50))
        assert not np.allclose(y, np.rint(y))

    def test_onoff_ignores_gaussian_options(self):
        corrupt = corruption.build('onoff', rate=0.5, low=0, high=1, step=0.1)
        assert corrupt(np.ones(10)).sum() == 5


@pytest.mark.parametrize('rate', [-0.1, 1.5])
def test_bad_rate(rate):
    with pytest.raises(aenets.util.ConfigurationError):
        corruption.build('onoff', rate=rate)


def test_unknown():
    with pytest.raises(aenets.util.ConfigurationError):
        corruption.build('saltpepper')


def test_build_instance():
    corrupt = corruption.OnOff(rate=0.2)
    assert corruption.build(corrupt) is corrupt
