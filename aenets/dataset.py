# -*- coding: utf-8 -*-

r'''Mini-batching of unlabeled training data.

Autoencoders are trained using "unlabeled" data: a collection of fixed-length
numeric vectors, for instance flattened grayscale images. Labels may be stored
alongside the vectors for display purposes, but they are never used during
training.

.. note::

    Individual samples are treated as rows. A dataset with 1000 examples of 784
    variables is stored as an array of shape (1000, 784).
'''

import climate
import numpy as np

from . import util

logging = climate.get_logger(__name__)


def split(samples, fraction=0.2, labels=None, rng=None):
    '''Split a set of samples into training and holdout parts.

    Parameters
    ----------
    samples : ndarray or sequence of sequences
        The data to split.
    fraction : float, optional
        Fraction of the samples to put in the holdout part. Defaults to 0.2.
    labels : ndarray, optional
        Labels for the samples; these are split alongside the samples.
    rng : :class:`numpy.random.RandomState` or int, optional
        Source of randomness for choosing the holdout samples.

    Returns
    -------
    train : ndarray or (ndarray, ndarray)
        The training samples (and labels, if given).
    holdout : ndarray or (ndarray, ndarray)
        The holdout samples (and labels, if given).
    '''
    if not 0 < fraction < 1:
        raise util.ConfigurationError(
            'holdout fraction must be in (0, 1), got {}'.format(fraction))
    samples = util.as_matrix(samples)
    order = util.random_state(rng).permutation(len(samples))
    n = int(round(fraction * len(samples)))
    if not 0 < n < len(samples):
        raise util.ConfigurationError(
            'cannot hold out {} of {} samples'.format(fraction, len(samples)))
    held, kept = np.sort(order[:n]), np.sort(order[n:])
    if labels is None:
        return samples[kept], samples[held]
    labels = np.asarray(labels)
    return (samples[kept], labels[kept]), (samples[held], labels[held])


class Dataset:
    '''Shuffle a set of examples and cut it into mini-batches.

    A mini-batch is a chunk of consecutive rows, more than one and usually
    far fewer than the whole set. The rows are shuffled before every pass and
    then cut into batches, so the last batch of a pass may be short.

    Parameters
    ----------
    samples : ndarray or sequence of sequences
        A set of equal-length numeric vectors, one example per row.
    labels : ndarray, optional
        A set of labels corresponding to the samples. Labels are carried along
        for display purposes only.
    name : str, optional
        A string that is used to describe this dataset. Usually something like
        'test' or 'train'.
    batch_size : int, optional
        The size of the mini-batches to create from the data. Defaults to 32.
    iteration_size : int, optional
        The number of batches to yield for each call to iterate(). Defaults to
        the number of batches needed to cover the data once.
    rng : :class:`numpy.random.RandomState` or int, optional
        Source of randomness for shuffling.

    Raises
    ------
    ConfigurationError :
        If the samples are empty, have inconsistent lengths, or contain fewer
        examples than one mini-batch.
    '''

    def __init__(self, samples, labels=None, name=None, batch_size=32,
                 iteration_size=None, rng=None):
        self.name = name or 'dataset'
        self.samples = util.as_matrix(samples, self.name)
        self.labels = None if labels is None else np.asarray(labels)
        if self.labels is not None and len(self.labels) != len(self.samples):
            raise util.ConfigurationError(
                '{}: {} labels for {} samples'.format(
                    self.name, len(self.labels), len(self.samples)))
        if batch_size < 1:
            raise util.ConfigurationError(
                '{}: batch size must be positive, got {}'.format(
                    self.name, batch_size))
        if len(self.samples) < batch_size:
            raise util.ConfigurationError(
                '{}: insufficient data, {} examples for a mini-batch of {}'
                .format(self.name, len(self.samples), batch_size))
        self.batch_size = batch_size
        self.rng = util.random_state(rng)

        n = len(self.samples)
        self.number_batches = (n + batch_size - 1) // batch_size
        self.iteration_size = iteration_size or self.number_batches

        self._order = np.arange(n)
        self._index = 0
        self.shuffle()

        logging.info('%s: %d of %d mini-batches of %s',
                     self.name, self.iteration_size, self.number_batches,
                     (batch_size, self.size))

    def __len__(self):
        return len(self.samples)

    @property
    def size(self):
        '''Number of variables in each example.'''
        return self.samples.shape[1]

    def __iter__(self):
        return self.iterate()

    def shuffle(self):
        self.rng.shuffle(self._order)

    def iterate(self):
        '''Yield mini-batches of samples.

        Yields
        ------
        batch : ndarray (batch-size, num-variables)
            A mini-batch of samples.
        '''
        for _ in range(self.iteration_size):
            if self._index >= self.number_batches:
                self.shuffle()
                self._index = 0
            i = self._index * self.batch_size
            self._index += 1
            yield self.samples[self._order[i:i + self.batch_size]]
