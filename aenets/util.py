# -*- coding: utf-8 -*-

'''Errors, registries, random initialization and data checks.'''

import fnmatch
import numpy as np

FLOAT = 'float64'


class Error(Exception):
    '''Base class for errors raised by aenets.'''


class ConfigurationError(Error):
    '''Bad data, hyperparameters, or model description.'''


class DivergenceError(Error):
    '''The training loss stopped being finite.'''


class Registrar(type):
    '''A metaclass that builds a registry of its subclasses.'''

    def __init__(cls, name, bases, dct):
        if not hasattr(cls, '_registry'):
            cls._registry = {}
        else:
            for key in [name] + list(
                    getattr(cls, '__extra_registration_keys__', ())):
                cls._registry[key.lower()] = cls
        super(Registrar, cls).__init__(name, bases, dct)

    def build(cls, key, *args, **kwargs):
        return cls._registry[key.lower()](*args, **kwargs)

    def is_registered(cls, key):
        return key.lower() in cls._registry


def random_state(rng=None):
    '''Return ``rng`` if it is a RandomState, or a new one seeded with it.'''
    if rng is None or isinstance(rng, (int, np.integer)):
        rng = np.random.RandomState(rng)
    return rng


def random_matrix(rows, cols, mean=0, std=1, sparsity=0, diagonal=0, rng=None):
    '''Draw a (rows, cols) matrix of initial weights.

    Parameters
    ----------
    rows, cols : int
        Shape of the matrix, that is the sizes of the layers it connects.
    mean, std : float, optional
        Entries are normal with this mean and standard deviation.
    sparsity : float in (0, 1), optional
        Approximate fraction of entries to zero out. The leading diagonal is
        always kept. Defaults to 0.
    diagonal : float, optional
        If nonzero, return a matrix that holds this value on the leading
        diagonal and zeros elsewhere, ignoring the other settings.
    rng : int or RandomState, optional
        Source of randomness.
    '''
    if diagonal != 0:
        return (diagonal * np.eye(max(rows, cols))[:rows, :cols]).astype(FLOAT)
    rng = random_state(rng)
    arr = mean + std * rng.randn(rows, cols)
    if 0 < sparsity < 1:
        keep = rng.uniform(size=(rows, cols)) >= sparsity
        np.fill_diagonal(keep, True)
        arr *= keep
    return arr.astype(FLOAT)


def random_vector(size, mean=0, std=1, rng=None):
    '''Draw a vector of normal values, typically a layer's initial bias.'''
    return (mean + std * random_state(rng).randn(size)).astype(FLOAT)


def as_matrix(data, name='data'):
    '''Convert a sequence of equal-length numeric vectors to a 2-D array.

    A single vector becomes a one-row matrix.

    Parameters
    ----------
    data : ndarray or sequence of sequences
        One example per row.
    name : str, optional
        Name of the data, used in error messages.

    Raises
    ------
    ConfigurationError :
        If the data are empty, ragged, or not numeric.

    Returns
    -------
    matrix : ndarray (num-examples, num-variables)
        A floating-point copy (or view) of the data.
    '''
    if not isinstance(data, np.ndarray):
        data = list(data)
        lengths = sorted(set(len(row) for row in data))
        if len(lengths) > 1:
            raise ConfigurationError(
                '{}: vectors have inconsistent lengths {}'.format(
                    name, lengths))
        data = np.asarray(data)
    if data.ndim == 1 and len(data):
        data = data[None, :]
    if data.ndim != 2:
        raise ConfigurationError(
            '{}: expected a 2-D array, got shape {}'.format(name, data.shape))
    if data.size == 0:
        raise ConfigurationError('{}: dataset is empty'.format(name))
    try:
        return data.astype(FLOAT, copy=False)
    except (TypeError, ValueError):
        raise ConfigurationError('{}: values must be numeric'.format(name))


def _matching(named, patterns):
    if isinstance(patterns, str):
        patterns = (patterns, )
    for name, value in named:
        if any(fnmatch.fnmatch(name, p) for p in patterns):
            yield name, value


def outputs_matching(outputs, patterns):
    '''Yield (name, array) pairs whose name matches any glob pattern.

    ``outputs`` may be a dict or a sequence of pairs.
    '''
    if isinstance(outputs, dict):
        outputs = outputs.items()
    return _matching(outputs, patterns)


def params_matching(layers, patterns):
    '''Yield (name, param) pairs of layer parameters matching any glob.'''
    return _matching(
        ((p.name, p) for layer in layers for p in layer.params), patterns)
