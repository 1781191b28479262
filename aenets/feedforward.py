# -*- coding: utf-8 -*-

'''Autoencoder models.'''

import climate
import numpy as np

from . import graph
from . import layers
from . import util

logging = climate.get_logger(__name__)


class Autoencoder(graph.Network):
    r'''A network trained to reproduce its own input.

    Examples
    --------

    Pass the layer sizes, input first, to get a model. The last layer must be
    as wide as the first:

    >>> model = aenets.Autoencoder([10, 4, 10])

    Decoding layers can share the transposed weights of the matching encoding
    layer:

    >>> model = aenets.Autoencoder([10, 6, 2, (6, 'tied'), (10, 'tied')])

    Or give only the encoder and let :func:`build` mirror it:

    >>> model = aenets.Autoencoder.build(784, hidden=(50, 2), activation='tanh')
    >>> [l.size for l in model.layers]
    [784, 50, 2, 50, 784]

    Data are arrays of shape (num-examples, num-variables). Training, with the
    optional sparsity penalty or input corruption:

    >>> model.train(inputs, epochs=50)
    >>> model.train(inputs, sparsity_beta=0.1, average_activation=0.05)
    >>> model.train(inputs, corruption='onoff', corruption_rate=0.3)

    And use:

    >>> code, reconstruction = model.forward(inputs[:3])
    >>> errors = model.reconstruction_error(inputs)

    Notes
    -----

    The model composes an encoder :math:`f: \mathbb{R}^d \to \mathbb{R}^k`
    with a decoder :math:`g: \mathbb{R}^k \to \mathbb{R}^d` and is trained so
    that :math:`g(f(x)) \approx x`. The code is the output of the middle
    layer. With :math:`k < d` the model is undercomplete and must compress.
    Wider codes are allowed, since sparse and denoising models can still learn
    useful features, but they log a warning.
    '''

    def __init__(self, layers, loss='mse', rng=13):
        super(Autoencoder, self).__init__(layers, loss=loss, rng=rng)
        nin, nout = self.layers[0].size, self.layers[-1].size
        if nin != nout:
            raise util.ConfigurationError(
                'autoencoder output size {} differs from input size {}'.format(
                    nout, nin))
        code = self.code_layer
        if len(self.layers) > 2 and code.size >= nin:
            logging.warning('code layer "%s" has %d units for %d inputs; '
                            'the model is not undercomplete',
                            code.name, code.size, nin)

    @classmethod
    def build(cls, input_size, hidden=(), activation='tanh',
              output_activation='linear', tied=False, **kwargs):
        '''Create an autoencoder whose decoder mirrors its encoder.

        Parameters
        ----------
        input_size : int
            Number of variables in each input example.
        hidden : int or sequence of int
            Sizes of the encoder's hidden layers, ending with the code layer.
            The decoder uses the same sizes in reverse order.
        activation : str, optional
            Activation for the hidden layers. Defaults to 'tanh'.
        output_activation : str, optional
            Activation for the output layer. Defaults to 'linear'.
        tied : bool, optional
            If True, decoding layers share the transposed weights of their
            encoding partners. Defaults to False.

        Other keyword arguments go to the constructor.
        '''
        hidden = (hidden, ) if isinstance(hidden, int) else tuple(hidden)
        if not hidden:
            raise util.ConfigurationError('autoencoder needs a hidden layer')
        form = 'tied' if tied else 'ff'
        specs = [input_size]
        specs.extend(dict(size=n, activation=activation) for n in hidden)
        specs.extend(dict(form=form, size=n, activation=activation)
                     for n in hidden[-2::-1])
        specs.append(dict(form=form, size=input_size,
                          activation=output_activation))
        return cls(specs, **kwargs)

    @property
    def code_layer(self):
        '''The middle layer, whose output is the code.'''
        return self.layers[len(self.layers) // 2]

    def forward(self, x):
        '''Compute the code and the reconstruction for some input.

        Parameters
        ----------
        x : ndarray (num-variables, ) or (num-examples, num-variables)
            One example, or several arranged as rows.

        Returns
        -------
        code : ndarray
            Code layer activations, shaped like ``x`` but with the code width.
        reconstruction : ndarray
            Network output, the same shape as ``x``.
        '''
        x = np.asarray(x, dtype=util.FLOAT)
        outputs = self.feed_forward(np.atleast_2d(x))
        code = outputs[self.code_layer.output_name]
        rec = outputs[self.layers[-1].output_name]
        if x.ndim == 1:
            return code[0], rec[0]
        return code, rec

    def encode(self, x, layer=None):
        '''Get the activations of a hidden layer, the code layer by default.

        ``layer`` is a layer index, name, or instance.
        '''
        return self.feed_forward(x)[self._output_of(layer)]

    def decode(self, z, layer=None):
        '''Run hidden activations through the rest of the network.

        Parameters
        ----------
        z : ndarray
            Activations of ``layer``, as returned by :func:`encode`.
        layer : int, str, or :class:`Layer <aenets.layers.Layer>`, optional
            The layer that produced ``z``. Defaults to the code layer.

        Returns
        -------
        reconstruction : ndarray
            Output of the last layer.
        '''
        name = self._output_of(layer)
        outputs = {name: np.asarray(z, dtype=util.FLOAT)}
        names = [l.output_name for l in self.layers]
        for l in self.layers[names.index(name) + 1:]:
            outputs.update(l.connect(outputs))
        return outputs[names[-1]]

    def _output_of(self, layer):
        if layer is None:
            return self.code_layer.output_name
        if isinstance(layer, int):
            return self.layers[layer].output_name
        if isinstance(layer, layers.Layer):
            return layer.output_name
        for l in self.layers:
            if l.name == layer:
                return l.output_name
        return layer

    def reconstruction_error(self, x):
        '''Mean squared difference between each example and its reconstruction.

        Returns
        -------
        err : ndarray (num-examples, )
        '''
        x = util.as_matrix(x)
        diff = self.predict(x) - x
        return (diff * diff).mean(axis=-1)
