# -*- coding: utf-8 -*-

'''This module contains optimization methods for autoencoder networks.

All of the optimizers here are mini-batch gradient methods: :class:`SGD`
(stochastic gradient descent with momentum) and :class:`RMSProp`. They share
the training loop in :class:`Optimizer`, which handles input corruption for
denoising models, validation, early stopping, and divergence checks. The
:class:`LayerwiseTrainer` is specific to neural networks and takes advantage of
the layered structure of a stacked autoencoder.
'''

import climate
import numbers
import numpy as np

from . import corruption
from . import layers
from . import regularizers
from . import util

logging = climate.get_logger(__name__)

HYPERPARAMETERS = dict(
    epochs=(numbers.Integral, 0),
    batch_size=(numbers.Integral, 1),
    train_batches=(numbers.Integral, 1),
    validate_every=(numbers.Integral, 1),
    patience=(numbers.Integral, 0),
    min_improvement=(numbers.Real, 0),
    learning_rate=(numbers.Real, 0),
    momentum=(numbers.Real, 0),
    rms_halflife=(numbers.Real, 0),
    rms_regularizer=(numbers.Real, 0),
    gradient_clip=(numbers.Real, 0),
    max_gradient_norm=(numbers.Real, 0),
    corruption_rate=(numbers.Real, 0),
    corruption_low=(numbers.Real, None),
    corruption_high=(numbers.Real, None),
    corruption_step=(numbers.Real, 0),
    sparsity_beta=(numbers.Real, 0),
    average_activation=(numbers.Real, None),
)
'''Numeric training keywords, with their type and smallest allowed value.'''

OPTIONAL = ('train_batches', 'patience', 'gradient_clip', 'max_gradient_norm')
'''Numeric keywords that may also be None.'''

OTHER_KEYWORDS = ('rng', 'corruption', 'regularizers', 'sparsity_form')


def check_keywords(kwargs):
    '''Validate the keyword arguments of a training call.

    Numeric hyperparameters must have the right type and lie in range.
    Keywords that no part of training reads are logged as warnings, since
    they are usually misspelled.

    Raises
    ------
    ConfigurationError :
        If a hyperparameter has a bad type or value.
    '''
    for key, value in kwargs.items():
        if key in HYPERPARAMETERS:
            if value is None and key in OPTIONAL:
                continue
            kind, low = HYPERPARAMETERS[key]
            if isinstance(value, bool) or not isinstance(value, kind):
                raise util.ConfigurationError(
                    '{} must be {}, got {!r}'.format(
                        key, 'an integer' if kind is numbers.Integral
                        else 'a number', value))
            if low is not None and value < low:
                raise util.ConfigurationError(
                    '{} must be at least {}, got {!r}'.format(key, low, value))
        elif key not in OTHER_KEYWORDS and \
                not regularizers.Regularizer.is_registered(key):
            logging.warning('ignoring unknown training keyword %s=%r',
                            key, value)


class Optimizer(util.Registrar(str('Base'), (), {})):
    '''Base class for mini-batch gradient optimizers.

    Parameters
    ----------
    network : :class:`aenets.graph.Network`
        The network to optimize. The network's parameters are updated in place.
    '''

    def __init__(self, network):
        self.network = network

    @classmethod
    def create(cls, algo, network):
        '''Create an optimizer by name.

        Raises
        ------
        ConfigurationError :
            If the name does not refer to a known optimizer.
        '''
        if not Optimizer.is_registered(algo):
            raise util.ConfigurationError(
                'unknown optimization algorithm "{}"'.format(algo))
        return Optimizer.build(algo, network)

    def itertrain(self, train, valid=None, **kwargs):
        '''Run the training loop, yielding monitors after every epoch.

        The first pair of monitors describes the model before any update.
        Each later pair holds the batch-weighted mean of the training monitors
        over the epoch and the latest validation monitors, which are only
        recomputed every ``validate_every`` epochs and after the last epoch.

        Parameters
        ----------
        train : :class:`Dataset <aenets.dataset.Dataset>`
            Batches used to compute parameter updates.
        valid : :class:`Dataset <aenets.dataset.Dataset>`
            Held-out data for validation and early stopping.
        epochs : int, optional
            Train for at most this many passes through the training data.
            Defaults to 100.
        validate_every : int, optional
            Evaluate the validation data every N epochs. Defaults to 1.
        patience : int, optional
            If given, stop training after this many validations in a row fail to
            improve the best validation loss by at least ``min_improvement``.
        min_improvement : float, optional
            Relative improvement of the validation loss that counts as progress.
            Defaults to 0.
        corruption : str, optional
            Name of a :mod:`corruption <aenets.corruption>` to apply to each
            training batch used as network input. The clean batch remains the
            reconstruction target.
        corruption_rate : float, optional
            Fraction of elements to corrupt in each example. Defaults to 0.3.
        corruption_low, corruption_high : float, optional
            Clamp range for "gaussian" corruption. Defaults to [0, 255].
        corruption_step : float, optional
            Rounding step for "gaussian" corruption. Defaults to 1.
        rng : :class:`numpy.random.RandomState` or int, optional
            Source of randomness for the corruption.

        Raises
        ------
        aenets.util.DivergenceError :
            If the loss becomes non-finite.

        Yields
        ------
        training : dict
            Monitors ('loss' and 'err') on the training data.
        validation : dict
            Monitors on the validation data.
        '''
        if valid is None:
            valid = train

        net = self.network
        regs = net.regularizers(**kwargs)
        corrupt = self._corruption(train, **kwargs)

        epochs = kwargs.get('epochs', 100)
        validate_every = max(1, kwargs.get('validate_every', 1))
        patience = kwargs.get('patience')
        min_improvement = kwargs.get('min_improvement', 0)

        logging.info('%s: training %s for %d epochs',
                     self.__class__.__name__,
                     ' -> '.join(l.name for l in net.layers), epochs)
        for loss in net.losses:
            loss.log()
        for reg in regs:
            reg.log()
        if corrupt is not None:
            corrupt.log()

        self._prepare(**kwargs)

        training = self._evaluate(train, regs, 0)
        validation = self._evaluate(valid, regs, 0)
        best, stale = validation['loss'], 0
        yield training, validation

        for epoch in range(1, epochs + 1):
            totals = dict(loss=0., err=0.)
            count = 0
            for batch in train:
                x = batch if corrupt is None else corrupt(batch)
                monitors, grads = net.gradients(x, batch, regs)
                self._check(monitors, 'train', epoch)
                self._step(grads)
                for key in totals:
                    totals[key] += len(batch) * monitors[key]
                count += len(batch)
            training = {k: v / count for k, v in totals.items()}

            validated = epoch % validate_every == 0 or epoch == epochs
            if validated:
                validation = self._evaluate(valid, regs, epoch)
                if best - validation['loss'] > min_improvement * abs(best):
                    best, stale = validation['loss'], 0
                else:
                    stale += 1

            logging.info('epoch %d: train loss=%.6g err=%.6g%s',
                         epoch, training['loss'], training['err'],
                         ' | valid loss=%.6g err=%.6g' % (
                             validation['loss'], validation['err'])
                         if validated else '')
            yield training, validation

            if patience and stale >= patience:
                logging.info('patience elapsed after %d epochs', epoch)
                break

    def _corruption(self, train, **kwargs):
        name = kwargs.get('corruption')
        if not name:
            return None
        extra = {}
        if 'corruption_low' in kwargs:
            extra['low'] = kwargs['corruption_low']
        if 'corruption_high' in kwargs:
            extra['high'] = kwargs['corruption_high']
        if 'corruption_step' in kwargs:
            extra['step'] = kwargs['corruption_step']
        return corruption.build(
            name,
            rate=kwargs.get('corruption_rate', 0.3),
            rng=kwargs.get('rng'),
            data=train.samples,
            **extra)

    def _evaluate(self, data, regs, epoch):
        monitors = self.network.evaluate(data.samples, data.samples, regs)
        self._check(monitors, data.name, epoch)
        return monitors

    def _check(self, monitors, name, epoch):
        if not np.isfinite(monitors['loss']):
            raise util.DivergenceError(
                '{}: loss is {} at epoch {}'.format(
                    name, monitors['loss'], epoch))

    def _clip(self, grad):
        if self.gradient_clip:
            grad = np.clip(grad, -self.gradient_clip, self.gradient_clip)
        if self.max_gradient_norm:
            norm = np.sqrt((grad * grad).sum())
            if norm > self.max_gradient_norm:
                grad = grad * (self.max_gradient_norm / norm)
        return grad

    def _prepare(self, gradient_clip=None, max_gradient_norm=None, **kwargs):
        '''Set up hyperparameters and optimizer state before training.'''
        self.gradient_clip = gradient_clip
        self.max_gradient_norm = max_gradient_norm

    def _step(self, grads):
        '''Update parameters in place, given their gradients.'''
        raise NotImplementedError


class SGD(Optimizer):
    r'''Stochastic gradient descent with momentum.

    Notes
    -----

    Each parameter :math:`\theta` keeps a velocity :math:`v`, initially zero,
    and is updated for every mini-batch:

    .. math::
       \begin{eqnarray*}
       v_{t+1} &=& \mu v_t - \alpha \nabla \mathcal{L}(\theta_t) \\
       \theta_{t+1} &=& \theta_t + v_{t+1}
       \end{eqnarray*}

    where :math:`\alpha` is the ``learning_rate`` (default 0.01) and
    :math:`\mu` is the ``momentum`` (default 0.9).
    '''

    def _prepare(self, learning_rate=0.01, momentum=0.9, **kwargs):
        super(SGD, self)._prepare(**kwargs)
        self.learning_rate = learning_rate
        self.momentum = momentum
        self._velocity = {}

    def _step(self, grads):
        for param, grad in grads:
            grad = self._clip(grad)
            vel = self._velocity.get(id(param), 0)
            vel = self.momentum * vel - self.learning_rate * grad
            self._velocity[id(param)] = vel
            param.value = param.value + vel


class RMSProp(Optimizer):
    r'''RMSProp: scale each gradient by a running RMS of recent gradients.

    Notes
    -----

    .. math::
       \begin{eqnarray*}
       g_{t+1} &=& \gamma g_t + (1 - \gamma) \nabla \mathcal{L}(\theta_t)^2 \\
       \theta_{t+1} &=& \theta_t - \frac{\alpha}{\sqrt{g_{t+1} + \epsilon}}
                        \nabla \mathcal{L}(\theta_t)
       \end{eqnarray*}

    The decay :math:`\gamma` is derived from ``rms_halflife`` (default 14
    updates), :math:`\epsilon` is ``rms_regularizer`` (default 1e-8) and the
    ``learning_rate`` defaults to 0.001.
    '''

    def _prepare(self, learning_rate=0.001, rms_halflife=14,
                 rms_regularizer=1e-8, **kwargs):
        super(RMSProp, self)._prepare(**kwargs)
        self.learning_rate = learning_rate
        self.decay = np.exp(-np.log(2) / rms_halflife)
        self.epsilon = rms_regularizer
        self._mean_square = {}

    def _step(self, grads):
        for param, grad in grads:
            grad = self._clip(grad)
            ms = self._mean_square.get(id(param), 0)
            ms = self.decay * ms + (1 - self.decay) * grad * grad
            self._mean_square[id(param)] = ms
            param.value = param.value - \
                self.learning_rate * grad / np.sqrt(ms + self.epsilon)


class LayerwiseTrainer(object):
    r'''Pretrain a stacked autoencoder one depth at a time.

    Each stage trains a shallow network made of the first few layers of the
    model plus a temporary decoding "tap". For layers [784, 100, 50, 100, 784]
    the stages are [784, 100, (784)], then [784, 100, 50, (784)], then the
    whole model, where (784) is the tap. Each tap is discarded after its
    stage, but the encoder weights it helped train are kept.

    A model with tied decoding layers, like [3, 4, 5, 4', 3'], is grown from
    the outside in: first [3, 4, 3'] with a tied tap, then the whole model.

    Every stage yields its own epoch-0 monitors followed by one pair per
    epoch, so a model with :math:`s` stages yields :math:`s (E + 1)` pairs for
    :math:`E` epochs.

    Parameters
    ----------
    algo : str
        Name of the :class:`Optimizer` used within each stage.
    network : :class:`aenets.graph.Network`
        The network to train.

    References
    ----------

    .. [Ben06] Y. Bengio, P. Lamblin, D. Popovici, & H. Larochelle. (NIPS 2006)
       "Greedy Layer-Wise Training of Deep Networks"
    '''

    def __init__(self, algo, network):
        self.algo = algo
        self.network = network

    def _taps(self, original, depth, tied):
        net = self.network
        if tied:
            taps = []
            for j in range(depth):
                taps.append(layers.Layer.build(
                    'tied',
                    name='lw{}'.format(j),
                    partner=original[depth - j].name,
                    inputs=(taps[-1] if taps else original[depth]).output_name,
                    activation=original[len(original) - depth + j].activate.name))
            return taps
        return [layers.Layer.build(
            'feedforward',
            name='lwout',
            inputs=original[depth].output_name,
            size=original[-1].size,
            activation=original[-1].activate.name,
            rng=net._rng)]

    def itertrain(self, train, valid=None, **kwargs):
        '''Train each stage in turn, yielding monitors as they are computed.

        Keyword arguments go to :func:`Optimizer.itertrain` for every stage.
        The network's layers and loss are restored when iteration ends, even
        if it ends early.
        '''
        net = self.network
        original = list(net.layers)
        output_name = net.losses[0].output_name
        tied = any(isinstance(l, layers.Tied) for l in original)
        stages = len(original) // 2 if tied else len(original) - 2
        try:
            for depth in range(1, stages + 1):
                taps = []
                if depth < stages:
                    taps = self._taps(original, depth, tied)
                net.layers = original[:depth + 1] + taps
                if not taps:
                    net.layers = original
                for tap in taps:
                    tap.bind(net)
                logging.info('layerwise: stage %d of %d: %s',
                             depth, stages,
                             ' -> '.join(l.name for l in net.layers))
                net.losses[0].output_name = net.layers[-1].output_name
                trainer = Optimizer.create(self.algo, net)
                for monitors in trainer.itertrain(train, valid, **kwargs):
                    yield monitors
        finally:
            net.layers = original
            net.losses[0].output_name = output_name
