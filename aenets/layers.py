# -*- coding: utf-8 -*-

'''Layers compute one stage of an autoencoder and its backward pass.'''

import climate
import numpy as np

from . import activations
from . import util

logging = climate.get_logger(__name__)

__all__ = [
    'Feedforward',
    'Input',
    'Layer',
    'Param',
    'Tied',
]


class Param(object):
    '''A named, mutable parameter array owned by a layer.

    Parameters
    ----------
    value : ndarray
        Initial value for the parameter.
    name : str
        Fully-scoped name of the parameter, like ``'hid1.w'``.
    '''

    def __init__(self, value, name):
        self.value = value
        self.name = name

    @property
    def ndim(self):
        return self.value.ndim

    @property
    def shape(self):
        return self.value.shape

    def get_value(self):
        '''Get a copy of the current value of this parameter.'''
        return self.value.copy()

    def set_value(self, value):
        '''Replace the value of this parameter.

        Raises
        ------
        ConfigurationError :
            If the new value does not have the shape of the old one.
        '''
        value = np.asarray(value, dtype=util.FLOAT)
        if value.shape != self.value.shape:
            raise util.ConfigurationError(
                '{}: cannot set shape {} to {}'.format(
                    self.name, self.value.shape, value.shape))
        self.value = value.copy()

    def __repr__(self):
        return 'Param({}, {})'.format(self.name, self.value.shape)


class Layer(util.Registrar(str('Base'), (), {})):
    '''Base class for the stages of a network.

    A layer owns its parameters (usually a weight matrix ``w`` and a bias
    ``b``) and knows how to compute its outputs from the outputs of the layer
    it reads from. Outputs live in a shared dictionary keyed by scoped names
    like ``'hid1:out'``, so a layer looks up its input by name and never holds
    a reference to the array itself.

    Subclasses implement :func:`setup` to create parameters, :func:`transform`
    for the forward pass, and :func:`backward` for the reverse pass.

    Parameters
    ----------
    size : int
        Number of units in this layer.
    inputs : str or tuple of str, optional
        Name of the output this layer reads. It is turned into a layer
        reference when the layer is :func:`bound <bind>` to a network.
    name : str, optional
        Name of this layer. Unnamed layers are numbered in creation order.
    activation : str, optional
        Name of the elementwise activation, see :func:`aenets.activations.build`.
        Defaults to 'linear'.
    rng : int or RandomState, optional
        Source of randomness for initial parameter values.
    mean, std, sparsity, diagonal : float, optional
        Settings for the initial values of every parameter in this layer. A
        suffixed key like ``std_w`` applies to the ``w`` parameter only and
        wins over the unsuffixed one.
    '''

    _count = 0

    def __init__(self, size, inputs=(), name=None, **kwargs):
        super(Layer, self).__init__()

        Layer._count += 1
        self.name = name or 'layer{}'.format(Layer._count)
        self.size = size
        self.kwargs = kwargs
        self.rng = util.random_state(kwargs.get('rng'))
        self.activate = activations.build(
            kwargs.get('activation', 'linear'), self)

        if isinstance(inputs, str):
            inputs = (inputs, )
        self.inputs = tuple(inputs)
        self._sources = {}
        self._params = []

    @property
    def params(self):
        '''Parameters owned by this layer.'''
        return list(self._params)

    @property
    def output_name(self):
        return self.full_name('out')

    @property
    def input_name(self):
        '''Scoped name of the one output this layer reads.'''
        if len(self.inputs) != 1:
            raise util.ConfigurationError(
                'layer "{}" needs exactly one input, has {}'.format(
                    self.name, self.inputs))
        return self.inputs[0]

    @property
    def input_size(self):
        return self._sources[self.input_name].size

    def full_name(self, output):
        '''Scope an output name by this layer's name, like "hid1:pre".'''
        return '{}:{}'.format(self.name, output)

    def connect(self, inputs):
        '''Compute this layer's outputs from those already computed.

        Parameters
        ----------
        inputs : dict of ndarray
            Arrays computed so far in a forward pass, keyed by scoped name.

        Returns
        -------
        outputs : dict
            New arrays from this layer, keyed by scoped name.
        '''
        outputs = self.transform(inputs)
        if isinstance(outputs, np.ndarray):
            outputs = dict(out=outputs)
        return {self.full_name(k): v for k, v in outputs.items()}

    def transform(self, inputs):
        '''Return this layer's output array, or a dict of named arrays.'''
        raise NotImplementedError

    def backward(self, outputs, grad):
        '''Carry an error gradient back through this layer.

        Parameters
        ----------
        outputs : dict of ndarray
            Every array computed in the forward pass.
        grad : ndarray
            Gradient of the loss with respect to this layer's "out" array.

        Returns
        -------
        dx : ndarray or None
            Gradient with respect to the array this layer read, or None for a
            layer with no input.
        grads : list of (:class:`Param`, ndarray)
            Gradient with respect to each parameter this layer used.
        '''
        raise NotImplementedError

    def bind(self, graph):
        '''Attach this layer to a network: resolve inputs, create parameters.

        Raises
        ------
        aenets.util.ConfigurationError :
            If an input names a layer that is not in the network.
        '''
        self._sources = {}
        self.resolve(graph.layers)
        self.setup()
        self.log()

    def resolve(self, layers):
        '''Look up the layers whose outputs this layer reads.'''
        names = []
        for name in self.inputs:
            owner = name.split(':')[0]
            found = [l for l in layers if l.name == owner]
            if len(found) != 1:
                raise util.ConfigurationError(
                    'layer "{}": no unique layer for input "{}" among {}'.format(
                        self.name, name, [l.name for l in layers]))
            if ':' not in name:
                name = found[0].output_name
            self._sources[name] = found[0]
            names.append(name)
        self.inputs = tuple(names)

    def setup(self):
        pass

    def _describe(self):
        return '{} "{}"'.format(self.__class__.__name__, self.name)

    def log(self):
        sources = ', '.join('{}({})'.format(name, layer.size)
                            for name, layer in self._sources.items())
        logging.info('layer %s: %s -> %s %s, %d parameters',
                     self._describe(), sources or '-', self.size,
                     self.activate.name,
                     sum(int(np.prod(p.shape)) for p in self.params))

    def _param_name(self, key):
        return '{}.{}'.format(self.name, key)

    def find(self, key):
        '''Get one of this layer's parameters.

        Parameters
        ----------
        key : str or int
            Short name of the parameter (like 'w'), or its position in
            :attr:`params`.

        Raises
        ------
        KeyError
            If there is no such parameter.
        '''
        name = self._param_name(key)
        for i, p in enumerate(self._params):
            if key == i or p.name == name:
                return p
        raise KeyError(key)

    def _init_option(self, param, option, default):
        return self.kwargs.get('{}_{}'.format(option, param),
                               self.kwargs.get(option, default))

    def add_weights(self, name, nin, nout, mean=0, std=0, sparsity=0, diagonal=0):
        '''Create a weight matrix of shape (nin, nout).

        Unless overridden, entries are drawn with standard deviation
        :math:`1 / \\sqrt{n_{in} + n_{out}}`.
        '''
        self._params.append(Param(
            util.random_matrix(
                nin, nout,
                mean=self._init_option(name, 'mean', mean),
                std=self._init_option(name, 'std', std or 1 / np.sqrt(nin + nout)),
                sparsity=self._init_option(name, 'sparsity', sparsity),
                diagonal=self._init_option(name, 'diagonal', diagonal),
                rng=self.rng),
            name=self._param_name(name)))

    def add_bias(self, name, size, mean=0, std=0):
        '''Create a bias vector, zero unless ``mean`` or ``std`` say otherwise.'''
        self._params.append(Param(
            util.random_vector(
                size,
                self.kwargs.get('mean_{}'.format(name), mean),
                self.kwargs.get('std_{}'.format(name), std),
                rng=self.rng),
            name=self._param_name(name)))

    def to_spec(self):
        '''Describe this layer as a dict of constructor arguments.'''
        spec = dict(self.kwargs)
        spec.update(form=self.__class__.__name__.lower(),
                    name=self.name,
                    size=self.size,
                    inputs=self.inputs,
                    activation=self.activate.name)
        return spec


class Input(Layer):
    '''The first layer of a network, holding the data as given.

    The data must be placed in the outputs dictionary under this layer's
    output name before a forward pass.
    '''

    def __init__(self, size, name='in', **kwargs):
        kwargs['activation'] = 'linear'
        super(Input, self).__init__(size=size, name=name, **kwargs)

    def connect(self, inputs):
        x = inputs[self.output_name]
        if x.shape[-1] != self.size:
            raise util.ConfigurationError(
                'layer "{}" expects {} variables, got {}'.format(
                    self.name, self.size, x.shape[-1]))
        return {self.output_name: x}

    def backward(self, outputs, grad):
        return None, []

    def to_spec(self):
        spec = super(Input, self).to_spec()
        del spec['activation']
        return spec


class Feedforward(Layer):
    '''An affine map followed by an elementwise activation.

    Notes
    -----

    Build with the form ``'feedforward'`` or ``'ff'``. The layer owns the
    parameters ``w`` (weights) and ``b`` (bias), and produces ``pre``
    (:math:`xW + b`) and ``out`` (the activation of ``pre``).
    '''

    __extra_registration_keys__ = ['ff']

    def setup(self):
        self.add_weights('w', self.input_size, self.size)
        self.add_bias('b', self.size)

    def transform(self, inputs):
        pre = np.dot(inputs[self.input_name], self.find('w').value)
        pre += self.find('b').value
        return dict(pre=pre, out=self.activate(pre))

    def backward(self, outputs, grad):
        w = self.find('w')
        dpre = grad * self.activate.grad(outputs[self.full_name('pre')],
                                         outputs[self.output_name])
        grads = [(w, np.dot(outputs[self.input_name].T, dpre)),
                 (self.find('b'), dpre.sum(axis=0))]
        return np.dot(dpre, w.value.T), grads


class Tied(Layer):
    '''A decoding layer that reuses the transposed weights of its partner.

    Notes
    -----

    The partner is the encoding layer this one mirrors: if the partner maps
    :math:`n \\to m` with weights :math:`W`, this layer maps :math:`m \\to n`
    with :math:`W^T`. Only the bias ``b`` belongs to this layer. Gradients for
    the shared matrix are credited to the partner's ``w``, so they add up with
    the partner's own gradient during a reverse pass.

    Parameters
    ----------
    partner : str or :class:`Layer`
        The layer (or its name) whose weights are shared.
    '''

    def __init__(self, partner, **kwargs):
        self.partner = partner
        kwargs['size'] = partner.input_size if isinstance(partner, Layer) else None
        super(Tied, self).__init__(**kwargs)

    def resolve(self, layers):
        super(Tied, self).resolve(layers)
        if isinstance(self.partner, str):
            found = [l for l in layers if l.name == self.partner]
            if len(found) != 1:
                raise util.ConfigurationError(
                    'layer "{}": no partner named "{}"'.format(
                        self.name, self.partner))
            self.partner = found[0]
        self.size = self.partner.input_size

    def setup(self):
        self.add_bias('b', self.size)

    def transform(self, inputs):
        pre = np.dot(inputs[self.input_name], self.partner.find('w').value.T)
        pre += self.find('b').value
        return dict(pre=pre, out=self.activate(pre))

    def backward(self, outputs, grad):
        w = self.partner.find('w')
        dpre = grad * self.activate.grad(outputs[self.full_name('pre')],
                                         outputs[self.output_name])
        grads = [(w, np.dot(dpre.T, outputs[self.input_name])),
                 (self.find('b'), dpre.sum(axis=0))]
        return np.dot(dpre, w.value), grads

    def _describe(self):
        return '{} << "{}"'.format(
            super(Tied, self)._describe(), self.partner.name)

    def to_spec(self):
        spec = super(Tied, self).to_spec()
        spec['partner'] = self.partner.name
        return spec
