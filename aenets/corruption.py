# -*- coding: utf-8 -*-

r'''Input corruption policies for training denoising autoencoders.

A denoising autoencoder receives a corrupted copy of each training example as
input, but is asked to reconstruct the clean example. The classes here produce
those corrupted copies. Each policy selects exactly
:math:`\lfloor r n \rfloor` of the :math:`n` elements of a vector uniformly at
random without replacement, where :math:`r` is the corruption rate, and then
replaces the selected elements:

- "onoff" (or "dropout") sets them to zero;
- "gaussian" replaces them with draws from a normal distribution matching the
  global statistics of the dataset, rounded to a grid (integers by default)
  and clamped to a valid intensity range.

Corruptions never modify their input in place. When given a 2-D array, each
row is corrupted independently.
'''

import climate
import numpy as np

from . import util

logging = climate.get_logger(__name__)


def build(name, rate=0.3, rng=None, data=None, **kwargs):
    '''Construct a corruption policy by name.

    Parameters
    ----------
    name : str or :class:`Corruption`
        Name of the corruption policy, or an already-created instance.
    rate : float, optional
        Fraction of elements of each vector to corrupt. Defaults to 0.3.
    rng : :class:`numpy.random.RandomState` or int, optional
        Source of randomness for the corruption.
    data : ndarray, optional
        If given, the corruption is :func:`fit <Corruption.fit>` to this
        dataset before it is returned.

    Raises
    ------
    ConfigurationError :
        If the name is unknown or the rate lies outside [0, 1].

    Returns
    -------
    corruption : :class:`Corruption`
        A corruption policy.
    '''
    if isinstance(name, Corruption):
        corrupt = name
    else:
        if not Corruption.is_registered(name):
            raise util.ConfigurationError(
                'unknown corruption "{}"'.format(name))
        corrupt = Corruption.build(name, rate=rate, rng=rng, **kwargs)
    if data is not None:
        corrupt.fit(data)
    return corrupt


class Corruption(util.Registrar(str('Base'), (), {})):
    '''Base class for input corruption policies.

    Parameters
    ----------
    rate : float
        Fraction of the elements of each vector to corrupt, in [0, 1].
    rng : :class:`numpy.random.RandomState` or int, optional
        A random number generator, or an integer seed for one.

    Attributes
    ----------
    rate : float
        Fraction of the elements of each vector to corrupt.
    rng : :class:`numpy.random.RandomState`
        The random number generator used to select and replace elements.
    '''

    def __init__(self, rate=0.3, rng=None):
        if not 0 <= rate <= 1:
            raise util.ConfigurationError(
                'corruption rate must be in [0, 1], got {}'.format(rate))
        self.rate = rate
        self.rng = util.random_state(rng)

    def log(self):
        '''Log some diagnostic info about this corruption.'''
        logging.info('corruption: %s(%s)', self.__class__.__name__, self.rate)

    def count(self, n):
        '''Get the number of elements to corrupt in a vector of length n.'''
        # guard against products like 0.29 * 100 landing just under an integer.
        return int(np.floor(self.rate * n + 1e-9))

    def fit(self, data):
        '''Adapt this corruption to the statistics of a dataset.

        Parameters
        ----------
        data : ndarray (num-examples, num-variables)
            A dataset.

        Returns
        -------
        self : :class:`Corruption`
        '''
        return self

    def mask(self, shape):
        '''Select elements to corrupt.

        Parameters
        ----------
        shape : tuple of int
            Shape of a vector or of a 2-D batch of vectors.

        Returns
        -------
        mask : ndarray of bool
            True at each element selected for corruption. Every row has
            exactly :func:`count` selected elements.
        '''
        mask = np.zeros(shape, bool)
        rows = mask.reshape((-1, shape[-1]))
        k = self.count(shape[-1])
        for row in rows:
            row[self.rng.choice(shape[-1], k, replace=False)] = True
        return mask

    def apply(self, x):
        '''Corrupt an input.

        Parameters
        ----------
        x : ndarray
            A vector, or a 2-D array with one example per row.

        Returns
        -------
        corrupted : ndarray
            A corrupted copy of ``x``.
        mask : ndarray of bool
            True at each element that was selected for corruption.
        '''
        x = np.asarray(x)
        mask = self.mask(x.shape)
        y = np.array(x, dtype=util.FLOAT)
        y[mask] = self.replace(mask.sum())
        return y, mask

    def replace(self, n):
        '''Draw replacement values for n selected elements.'''
        raise NotImplementedError

    def __call__(self, x):
        return self.apply(x)[0]


class OnOff(Corruption):
    '''Set a random subset of elements to zero.

    The clamp range and rounding step of :class:`Gaussian` are accepted and
    ignored, so the same training keywords work with either policy.
    '''

    __extra_registration_keys__ = ['dropout']

    def __init__(self, rate=0.3, rng=None, low=None, high=None, step=None):
        super(OnOff, self).__init__(rate=rate, rng=rng)

    def replace(self, n):
        return np.zeros(n, util.FLOAT)


class Gaussian(Corruption):
    '''Replace a random subset of elements with rounded normal samples.

    Parameters
    ----------
    mean : float, optional
        Mean of the replacement distribution. Usually the global mean of the
        dataset, see :func:`fit`. Defaults to 0.
    std : float, optional
        Standard deviation of the replacement distribution. Usually the global
        standard deviation of the dataset. Defaults to 1.
    low : float, optional
        Smallest valid value. Defaults to 0.
    high : float, optional
        Largest valid value. Defaults to 255.
    step : float, optional
        Replacement values are rounded to the nearest multiple of this.
        Defaults to 1, which suits integer pixel values. Use 1/255 for pixels
        scaled to [0, 1], or 0 to skip rounding.
    '''

    def __init__(self, rate=0.3, rng=None, mean=None, std=None, low=0, high=255,
                 step=1):
        super(Gaussian, self).__init__(rate=rate, rng=rng)
        if step < 0:
            raise util.ConfigurationError(
                'gaussian corruption step must be >= 0, got {}'.format(step))
        if low > high:
            raise util.ConfigurationError(
                'gaussian corruption range [{}, {}] is empty'.format(low, high))
        self._fixed = mean is not None and std is not None
        self.mean = 0. if mean is None else mean
        self.std = 1. if std is None else std
        self.low = low
        self.high = high
        self.step = step

    def log(self):
        logging.info('corruption: %s(%s) ~ N(%.3g, %.3g) in [%s, %s]',
                     self.__class__.__name__, self.rate,
                     self.mean, self.std, self.low, self.high)

    def fit(self, data):
        if not self._fixed:
            data = np.asarray(data)
            self.mean = float(data.mean())
            self.std = float(data.std())
        return self

    def replace(self, n):
        values = self.rng.normal(self.mean, self.std, size=n)
        if self.step:
            values = self.step * np.rint(values / self.step)
        return np.clip(values, self.low, self.high)
