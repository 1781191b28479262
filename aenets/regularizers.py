# -*- coding: utf-8 -*-

r'''Penalty terms added to the training loss.

A regularizer reads the arrays of a forward pass and contributes a weighted
scalar to the training objective (:func:`Regularizer.loss`). It also supplies
the gradient of that scalar with respect to the outputs and parameters it
touched (:func:`Regularizer.gradient`), which the network folds into its
reverse pass. Penalties are counted in the 'loss' monitor but never in 'err'.
'''

import climate
import numpy as np

from . import util

logging = climate.get_logger(__name__)


def from_kwargs(graph, **kwargs):
    '''Build the regularizers requested by training keyword arguments.

    Parameters
    ----------
    graph : :class:`aenets.graph.Network`
        The network being trained.
    regularizers : list or dict, optional
        A list of :class:`Regularizer` instances is returned unchanged. A dict
        is merged into the other keywords.
    sparsity_beta : float, optional
        Weight of a :class:`Sparsity` penalty on the code (middle) layer.
        Defaults to 0, no penalty.
    average_activation : float, optional
        Target mean activation of the code units. Defaults to 0.
    sparsity_form : str, optional
        'squared' (the default) or 'kl'.

    Any other keyword that names a registered regularizer, like
    ``weight_l2=0.01`` or ``hidden_l1=dict(weight=0.1, pattern='hid1:out')``,
    adds that regularizer when its value is truthy.

    Returns
    -------
    regs : list of :class:`Regularizer`
    '''
    regs = kwargs.get('regularizers')
    if isinstance(regs, (tuple, list)):
        return list(regs)
    if isinstance(regs, dict):
        kwargs.update(regs)

    regs = []
    if kwargs.get('sparsity_beta'):
        code = graph.layers[len(graph.layers) // 2]
        regs.append(Sparsity(
            pattern=code.output_name,
            weight=kwargs['sparsity_beta'],
            target=kwargs.get('average_activation', 0),
            form=kwargs.get('sparsity_form', 'squared')))

    for key, value in kwargs.items():
        if not Regularizer.is_registered(key) or not value:
            continue
        if not isinstance(value, dict):
            value = dict(weight=value)
        regs.append(Regularizer.build(key, **value))
    return regs


class Regularizer(util.Registrar(str('Base'), (), {})):
    r'''Base class for penalties.

    Parameters
    ----------
    pattern : str, optional
        Glob selecting the parameters (like 'hid*.w') or outputs (like
        'hid1:out') the penalty applies to. Each subclass picks a sensible
        default when this is None.
    weight : float
        Multiplier for the penalty in the training objective.
    '''

    def __init__(self, pattern=None, weight=0.):
        self.pattern = pattern
        self.weight = weight

    def log(self):
        logging.info('regularizer: %s * %s(%s)',
                     self.weight, self.__class__.__name__, self.pattern)

    def loss(self, layers, outputs):
        '''The unweighted penalty for one forward pass.'''
        return 0.

    def gradient(self, layers, outputs):
        '''Gradient of the unweighted penalty.

        Parameters
        ----------
        layers : list of :class:`aenets.layers.Layer`
            Layers of the network.
        outputs : dict of ndarray
            Arrays of the forward pass, keyed by scoped output name.

        Returns
        -------
        output_grads : dict of ndarray
            Gradient for each output the penalty reads.
        param_grads : list of (:class:`aenets.layers.Param`, ndarray)
            Gradient for each parameter the penalty reads.
        '''
        return {}, []

    def _weights(self, layers):
        return [p for _, p in util.params_matching(layers, self.pattern or '*')
                if p.ndim > 1]

    def _hiddens(self, layers, outputs):
        pattern = self.pattern or [l.output_name for l in layers[1:-1]]
        return list(util.outputs_matching(outputs, pattern))


class WeightL2(Regularizer):
    r'''Weight decay: the mean squared entry of each weight matrix.

    Notes
    -----

    The penalty averages :math:`\frac{1}{|W|}\|W\|_F^2` over the matching
    matrices. All 2-D parameters match by default; biases never do.

    >>> net.train(..., weight_decay=dict(weight=0.1, pattern='hid[23].w'))
    '''

    __extra_registration_keys__ = ['weight_l2', 'weight_decay']

    def loss(self, layers, outputs):
        params = self._weights(layers)
        if not params:
            return 0
        return sum(np.square(p.value).mean() for p in params) / len(params)

    def gradient(self, layers, outputs):
        params = self._weights(layers)
        return {}, [(p, 2 * p.value / (p.value.size * len(params)))
                    for p in params]


class WeightL1(Regularizer):
    r'''The mean absolute entry of each weight matrix, averaged over matches.'''

    __extra_registration_keys__ = ['weight_l1', 'weight_sparsity']

    def loss(self, layers, outputs):
        params = self._weights(layers)
        if not params:
            return 0
        return sum(np.abs(p.value).mean() for p in params) / len(params)

    def gradient(self, layers, outputs):
        params = self._weights(layers)
        return {}, [(p, np.sign(p.value) / (p.value.size * len(params)))
                    for p in params]


class HiddenL1(Regularizer):
    r'''The mean absolute activation of hidden outputs.

    Every hidden layer's 'out' matches unless a pattern is given:

    >>> net.train(..., hidden_l1=dict(weight=0.1, pattern='hid2:out'))
    '''

    __extra_registration_keys__ = ['hidden_l1', 'hidden_sparsity']

    def loss(self, layers, outputs):
        hiddens = self._hiddens(layers, outputs)
        if not hiddens:
            return 0
        return sum(np.abs(h).mean() for _, h in hiddens) / len(hiddens)

    def gradient(self, layers, outputs):
        hiddens = self._hiddens(layers, outputs)
        return {name: np.sign(h) / (h.size * len(hiddens))
                for name, h in hiddens}, []


class Sparsity(Regularizer):
    r'''Pull the mean activation of each code unit toward a target.

    Parameters
    ----------
    target : float
        Desired mean activation :math:`\rho`.
    form : str
        'squared' or 'kl'.

    Notes
    -----

    With :math:`\hat\rho_j` the mean activation of unit :math:`j` over a
    mini-batch of :math:`n` units, the 'squared' penalty is

    .. math::
        \frac{1}{n} \sum_{j=1}^n (\hat\rho_j - \rho)^2

    and the 'kl' penalty is the summed divergence between Bernoulli
    distributions,

    .. math::
        \sum_{j=1}^n \rho \log\frac{\rho}{\hat\rho_j} +
        (1 - \rho) \log\frac{1 - \rho}{1 - \hat\rho_j}

    which needs :math:`0 < \rho < 1` and clips :math:`\hat\rho_j` into that
    interval. It suits logistic code units.

    >>> net.train(..., sparsity_beta=0.1, average_activation=0.05)
    '''

    EPSILON = 1e-6

    def __init__(self, pattern=None, weight=0., target=0., form='squared'):
        super(Sparsity, self).__init__(pattern=pattern, weight=weight)
        if form not in ('squared', 'kl'):
            raise util.ConfigurationError(
                'unknown sparsity penalty "{}"'.format(form))
        if form == 'kl' and not 0 < target < 1:
            raise util.ConfigurationError(
                'kl sparsity needs a target in (0, 1), got {}'.format(target))
        self.target = target
        self.form = form

    def log(self):
        logging.info('regularizer: %s * Sparsity(%s, %s toward %s)',
                     self.weight, self.pattern, self.form, self.target)

    def _rho(self, h):
        rho = h.mean(axis=0)
        if self.form == 'kl':
            rho = np.clip(rho, self.EPSILON, 1 - self.EPSILON)
        return rho

    def loss(self, layers, outputs):
        t = self.target
        total = 0
        for _, h in self._hiddens(layers, outputs):
            rho = self._rho(h)
            if self.form == 'kl':
                total += (t * np.log(t / rho) +
                          (1 - t) * np.log((1 - t) / (1 - rho))).sum()
            else:
                total += np.square(rho - t).mean()
        return total

    def gradient(self, layers, outputs):
        t = self.target
        grads = {}
        for name, h in self._hiddens(layers, outputs):
            rho = self._rho(h)
            if self.form == 'kl':
                drho = (1 - t) / (1 - rho) - t / rho
            else:
                drho = 2 * (rho - t) / rho.size
            grads[name] = np.tile(drho / len(h), (len(h), 1))
        return grads, []
