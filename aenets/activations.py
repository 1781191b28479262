# -*- coding: utf-8 -*-

r'''Elementwise nonlinearities for layers.

Layers name their activation and get an instance from :func:`build`. The
registered names are "linear" (or "identity"), "tanh", "logistic" (or
"sigmoid"), "relu" (or "rect:max") and "softplus".

An activation maps pre-activation values to outputs and also reports its own
derivative, given both the inputs and the outputs, for the reverse pass.
'''

import numpy as np

from . import util


def build(name, layer=None, **kwargs):
    '''Get an activation instance by name.

    An :class:`Activation` passed in is returned unchanged.

    Raises
    ------
    ConfigurationError :
        If no activation has this name.
    '''
    if isinstance(name, Activation):
        return name
    if not isinstance(name, str) or not Activation.is_registered(name):
        raise util.ConfigurationError(
            'unknown activation "{}"'.format(name))
    return Activation.build(name, name=name, layer=layer, **kwargs)


class Activation(util.Registrar(str('Base'), (), {})):
    '''Base class for activations.

    Parameters
    ----------
    name : str
        The name this activation was built with.
    layer : :class:`aenets.layers.Layer`, optional
        The layer that owns this activation.
    '''

    def __init__(self, name, layer=None, **kwargs):
        self.name = name
        self.layer = layer
        self.kwargs = kwargs

    def __call__(self, x):
        '''Map pre-activation values ``x`` to outputs.'''
        raise NotImplementedError

    def grad(self, x, y):
        '''Elementwise derivative at ``x``, where ``y`` is ``self(x)``.'''
        raise NotImplementedError


class Linear(Activation):
    '''The identity function.'''

    __extra_registration_keys__ = ['identity']

    def __call__(self, x):
        return x

    def grad(self, x, y):
        return np.ones_like(x)


class Tanh(Activation):
    '''Hyperbolic tangent.'''

    def __call__(self, x):
        return np.tanh(x)

    def grad(self, x, y):
        return 1 - y * y


class Logistic(Activation):
    '''The logistic sigmoid, squashing inputs into (0, 1).'''

    __extra_registration_keys__ = ['sigmoid']

    def __call__(self, x):
        return 0.5 * (1 + np.tanh(0.5 * x))

    def grad(self, x, y):
        return y * (1 - y)


class Relu(Activation):
    '''Rectified linear activation.'''

    __extra_registration_keys__ = ['rect:max']

    def __call__(self, x):
        return (x + abs(x)) / 2

    def grad(self, x, y):
        return (x > 0).astype(x.dtype)


class Softplus(Activation):
    r'''Smooth approximation of the rectifier, :math:`\log(1 + e^x)`.'''

    def __call__(self, x):
        return np.logaddexp(0, x)

    def grad(self, x, y):
        return 0.5 * (1 + np.tanh(0.5 * x))
