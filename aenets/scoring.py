# -*- coding: utf-8 -*-

'''Rank examples by how poorly an autoencoder reconstructs them.

Examples that an autoencoder reconstructs badly are unlike the data it was
trained on, so reconstruction error serves as an anomaly score. The functions
here rank a dataset by descending error; examples with equal error keep their
original order.
'''

import numpy as np

from . import util


def score(model, data):
    '''Rank the examples in a dataset by reconstruction error.

    Parameters
    ----------
    model : :class:`aenets.feedforward.Autoencoder`
        A trained autoencoder.
    data : ndarray (num-examples, num-variables)
        The examples to score.

    Returns
    -------
    ranking : list of (int, float)
        Pairs of (example index, reconstruction error), sorted by descending
        error. Ties are broken by example index.
    '''
    err = model.reconstruction_error(data)
    order = np.argsort(-err, kind='stable')
    return [(int(i), float(err[i])) for i in order]


def top_k(model, data, k):
    '''Get the k examples with the largest reconstruction error.

    Parameters
    ----------
    model : :class:`aenets.feedforward.Autoencoder`
        A trained autoencoder.
    data : ndarray (num-examples, num-variables)
        The examples to score.
    k : int
        Number of examples to return. If this exceeds the number of examples,
        all examples are returned.

    Raises
    ------
    ConfigurationError :
        If k is negative.

    Returns
    -------
    ranking : list of (int, float)
        The first k entries of :func:`score`.
    '''
    if k < 0:
        raise util.ConfigurationError(
            'cannot select the top {} examples'.format(k))
    return score(model, data)[:k]
