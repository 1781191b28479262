# -*- coding: utf-8 -*-

'''Reconstruction losses.'''

import climate
import numpy as np

from . import util

logging = climate.get_logger(__name__)


class Loss(util.Registrar(str('Base'), (), {})):
    r'''Base class for losses comparing a network output to a target.

    Parameters
    ----------
    weight : float, optional
        Multiplier applied when this loss is summed into the training
        objective. Defaults to 1.
    output_name : str, optional
        The network output this loss reads. A bare layer name like 'out'
        means that layer's 'out' output.
    '''

    def __init__(self, weight=1., output_name='out'):
        self.weight = weight
        self.output_name = output_name
        if ':' not in self.output_name:
            self.output_name += ':out'

    def log(self):
        logging.info('loss: %s * %s on %s',
                     self.weight, self.__class__.__name__, self.output_name)

    def __call__(self, outputs, target):
        '''Mean of :func:`per_example` over the batch.'''
        return self.per_example(outputs, target).mean()

    def per_example(self, outputs, target):
        '''Compute the loss of each row separately.

        Parameters
        ----------
        outputs : dict of ndarray
            Arrays from a forward pass, keyed by scoped output name.
        target : ndarray (num-examples, num-variables)
            Expected values of the tapped output.

        Returns
        -------
        loss : ndarray (num-examples, )
            One loss value per example.
        '''
        raise NotImplementedError

    def gradient(self, outputs, target):
        '''Gradient of :func:`__call__` with respect to the tapped output.'''
        raise NotImplementedError


class MeanSquaredError(Loss):
    r'''Squared difference, averaged over variables and then examples.

    Notes
    -----

    For an output matrix :math:`X` and target :math:`T`, both with :math:`m`
    rows of :math:`d` variables,

    .. math::
       \mathcal{L}(X, T) = \frac{1}{md} \sum_{j=1}^m \sum_{i=1}^d (x_{ji} - t_{ji})^2

    The per-example value is the inner mean, which is the reconstruction
    error used to rank examples.
    '''

    __extra_registration_keys__ = ['MSE']

    def per_example(self, outputs, target):
        diff = outputs[self.output_name] - target
        return (diff * diff).mean(axis=-1)

    def gradient(self, outputs, target):
        diff = outputs[self.output_name] - target
        return 2 * diff / diff.size


class MeanAbsoluteError(Loss):
    r'''Absolute difference, averaged over variables and then examples.

    .. math::
       \mathcal{L}(X, T) = \frac{1}{md} \sum_{j=1}^m \sum_{i=1}^d |x_{ji} - t_{ji}|
    '''

    __extra_registration_keys__ = ['MAE']

    def per_example(self, outputs, target):
        return np.abs(outputs[self.output_name] - target).mean(axis=-1)

    def gradient(self, outputs, target):
        diff = outputs[self.output_name] - target
        return np.sign(diff) / diff.size
