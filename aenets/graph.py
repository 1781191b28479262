# -*- coding: utf-8 -*-

r'''This module contains the layered network that autoencoders build on.'''

import climate
import gzip
import numpy as np
import pickle
import time

from . import dataset
from . import layers
from . import losses
from . import regularizers
from . import trainer
from . import util

logging = climate.get_logger(__name__)


class Network(object):
    '''A stack of layers, a loss, and the machinery to train them.

    Notes
    -----

    A network is an ordered list of :mod:`layers <aenets.layers>`. The first
    layer receives the data, and every later layer reads the output of the
    layer before it. Each array computed during a forward pass is stored under
    a scoped name of the form "layer:output": the pre-activation values of a
    layer called 'hid1' are 'hid1:pre' and its activations are 'hid1:out'. The
    first layer is named 'in', the last 'out', and the ones between 'hid1',
    'hid2', and so on.

    Training minimizes a :mod:`loss <aenets.losses>` computed from 'out:out'
    (plus any :mod:`regularizers <aenets.regularizers>`). The gradient of that
    loss is carried back through the layers in reverse order by
    :func:`gradients`.

    Parameters
    ----------
    layers : sequence of int, tuple, dict, or :class:`Layer <aenets.layers.Layer>`
        One entry per layer, see :func:`add_layer`.
    loss : str or :class:`Loss <aenets.losses.Loss>`
        The loss to minimize. Defaults to 'mse'.
    rng : int or RandomState, optional
        Seed (or random state) for initializing parameters; also the default
        source of randomness for training. Defaults to 13.

    Attributes
    ----------
    layers : list of :class:`Layer <aenets.layers.Layer>`
        The layers of the network, input first.
    losses : list of :class:`Loss <aenets.losses.Loss>`
        Losses that are summed to form the training objective.
    '''

    DEFAULT_HIDDEN_ACTIVATION = 'tanh'
    '''Activation used by hidden layers that do not name one.'''

    DEFAULT_OUTPUT_ACTIVATION = 'linear'
    '''Activation used by the last layer if it does not name one.'''

    def __init__(self, layers=(), loss='mse', rng=13):
        self._rng = util.random_state(rng)

        self.layers = []
        for i, spec in enumerate(layers):
            self.add_layer(spec, is_output=i == len(layers) - 1)
        for layer in self.layers:
            layer.bind(self)

        self.losses = []
        if loss and self.layers:
            self.set_loss(loss, output_name=self.layers[-1].output_name)

    def add_layer(self, layer=None, is_output=False, **kwargs):
        '''Append a :mod:`layer <aenets.layers>` to the network.

        Parameters
        ----------
        layer : int, tuple, dict, or :class:`Layer <aenets.layers.Layer>`
            Description of the layer. A Layer instance is appended as-is. An
            integer gives the number of units. A tuple may combine a size, a
            layer form (like 'tied') and an activation name, in any order. A
            dict holds keyword arguments for the layer, including an optional
            'form'.
        is_output : bool, optional
            True for the last layer of the network, which is named 'out' and
            defaults to a linear activation.

        Raises
        ------
        aenets.util.ConfigurationError :
            If the description names an unknown form, has no valid size, or
            describes a tied layer with no partner.
        '''
        if isinstance(layer, layers.Layer):
            self.layers.append(layer)
            return

        form, kwargs = self._parse_spec(layer, kwargs)

        if form == 'input':
            kwargs.setdefault('name', 'in')
        else:
            kwargs.setdefault(
                'name', 'out' if is_output else 'hid{}'.format(len(self.layers)))
            kwargs.setdefault('inputs', self.layers[-1].output_name)
            kwargs.setdefault('rng', self._rng)
            kwargs.setdefault('activation', self.DEFAULT_OUTPUT_ACTIVATION
                              if is_output else self.DEFAULT_HIDDEN_ACTIVATION)

        if not layers.Layer.is_registered(form):
            raise util.ConfigurationError('unknown layer form "{}"'.format(form))

        if form == 'tied':
            kwargs.pop('size', None)
            if 'partner' not in kwargs:
                kwargs['partner'] = self._find_partner(kwargs['name'])
        elif not isinstance(kwargs.get('size'), int) or kwargs['size'] < 1:
            raise util.ConfigurationError(
                'layer "{}" needs a positive integer size, got {!r}'.format(
                    kwargs['name'], kwargs.get('size')))

        self.layers.append(layers.Layer.build(form, **kwargs))

    def _parse_spec(self, spec, kwargs):
        '''Split a layer description into a form name and keyword arguments.'''
        form = kwargs.pop('form', 'ff' if self.layers else 'input')
        if isinstance(spec, int):
            kwargs.setdefault('size', spec)
        elif isinstance(spec, (tuple, list)):
            for el in spec:
                if isinstance(el, type) and issubclass(el, layers.Layer):
                    form = el.__name__
                elif isinstance(el, str) and layers.Layer.is_registered(el):
                    form = el
                elif isinstance(el, str):
                    kwargs['activation'] = el
                elif isinstance(el, int):
                    kwargs['size'] = el
        elif isinstance(spec, dict):
            spec = dict(spec)
            form = spec.pop('form', form)
            kwargs.update(spec)
        return form.lower(), kwargs

    def _find_partner(self, name):
        '''Name the encoding layer that a new tied layer should mirror.

        Walking back from the newest layer, each tied layer opens a pair and
        each untied layer closes one; the partner closes the new layer's pair.
        '''
        depth = 1
        for layer in self.layers[:0:-1]:
            depth += 1 if isinstance(layer, layers.Tied) else -1
            if depth == 0:
                return layer.name
        raise util.ConfigurationError(
            'tied layer "{}" has no partner among {}'.format(
                name, [l.name for l in self.layers]))

    def add_loss(self, loss=None, **kwargs):
        '''Add a :mod:`loss <aenets.losses>` to the training objective.

        Parameters
        ----------
        loss : str, dict, or :class:`aenets.losses.Loss`
            A Loss instance is added directly. A string names the loss to
            build. A dict gives the name under 'form' and any other arguments
            for :func:`aenets.losses.Loss.build`.

        Raises
        ------
        aenets.util.ConfigurationError :
            If the loss is not registered.
        '''
        if isinstance(loss, losses.Loss):
            self.losses.append(loss)
            return

        kw = dict(output_name=self.layers[-1].output_name)
        kw.update(kwargs)
        form = kw.pop('form', loss or 'mse')
        if isinstance(loss, dict):
            kw.update(loss)
            form = kw.pop('form', 'mse')

        if not losses.Loss.is_registered(form):
            raise util.ConfigurationError('unknown loss "{}"'.format(form))
        self.losses.append(losses.Loss.build(form, **kw))

    def set_loss(self, *args, **kwargs):
        '''Replace all losses with a single new one; see :func:`add_loss`.'''
        self.losses = []
        self.add_loss(*args, **kwargs)

    def itertrain(self, train, valid=None, algo='sgd', subalgo='sgd',
                  save_every=0, save_progress=None, **kwargs):
        '''Train the network, yielding monitor values after every epoch.

        Each item produced is a ``(train, valid)`` pair of dictionaries with
        keys 'loss' (the training objective, including penalties) and 'err'
        (the loss alone). The first pair describes the untrained network.
        Validation can run less often than every epoch, in which case the most
        recent validation values are repeated.

        The parameters are updated in place, so when iteration stops the
        network holds the trained values.

        Parameters
        ----------
        train : ndarray or :class:`Dataset <aenets.dataset.Dataset>`
            Training examples, one per row.
        valid : ndarray or :class:`Dataset <aenets.dataset.Dataset>`, optional
            Held-out examples for validation. Defaults to the training data.
        algo : str, optional
            Name of an :class:`optimizer <aenets.trainer.Optimizer>`, or
            'layerwise' to pretrain a stacked model one layer at a time.
            Defaults to 'sgd'.
        subalgo : str, optional
            Optimizer for each stage of layerwise training. Defaults to 'sgd'.
        save_every : int or float, optional
            How often to save the model while training: an int counts epochs,
            a float counts minutes. Defaults to 0, never.
        save_progress : str, optional
            Where to save the model during training. A "{}" in the path is
            replaced with the Unix time of the save.
        batch_size : int, optional
            Number of examples in a mini-batch. Defaults to 32.
        train_batches : int, optional
            Number of mini-batches in a training epoch. Defaults to one pass
            over the training data.
        rng : int or RandomState, optional
            Randomness for shuffling and corruption. Defaults to the random
            state of the network.

        Other keyword arguments configure the optimizer (see
        :func:`aenets.trainer.Optimizer.itertrain`) and the regularizers (see
        :func:`aenets.regularizers.from_kwargs`).

        Raises
        ------
        aenets.util.ConfigurationError :
            If the data or the training configuration are invalid.
        aenets.util.DivergenceError :
            If the loss becomes non-finite during training.

        Yields
        ------
        training : dict
            Monitor values for the training data.
        validation : dict
            Monitor values for the validation data.
        '''
        trainer.check_keywords(kwargs)
        kwargs['rng'] = util.random_state(kwargs.get('rng', self._rng))
        batch_size = kwargs.get('batch_size', 32)

        if valid is None:
            valid = train
        if not isinstance(train, dataset.Dataset):
            train = dataset.Dataset(
                train, name='train', batch_size=batch_size,
                iteration_size=kwargs.get('train_batches'), rng=kwargs['rng'])
        if not isinstance(valid, dataset.Dataset):
            samples = util.as_matrix(valid, 'valid')
            valid = dataset.Dataset(
                samples, name='valid',
                batch_size=min(batch_size, len(samples)), rng=kwargs['rng'])
        for ds in (train, valid):
            if ds.size != self.layers[0].size:
                raise util.ConfigurationError(
                    '{}: {} variables for a network with {} inputs'.format(
                        ds.name, ds.size, self.layers[0].size))

        if isinstance(algo, str):
            algo = algo.lower()
            if algo.startswith('layer') or algo.startswith('stack'):
                algo = trainer.LayerwiseTrainer(subalgo, self)
            else:
                algo = trainer.Optimizer.create(algo, self)

        last_save = time.time()
        for epoch, monitors in enumerate(algo.itertrain(train, valid, **kwargs)):
            yield monitors
            if not save_progress or not epoch:
                continue
            now = time.time()
            if isinstance(save_every, float):
                due = now - last_save > 60 * save_every
            else:
                due = save_every > 0 and epoch % save_every == 0
            if due:
                self.save(save_progress.format(int(now)))
                last_save = now

    def train(self, *args, **kwargs):
        '''Train the network to completion; see :func:`itertrain`.

        Returns
        -------
        training : dict
            The last monitor values for the training data.
        validation : dict
            The last monitor values for the validation data.
        '''
        monitors = None
        for monitors in self.itertrain(*args, **kwargs):
            pass
        return monitors

    @property
    def params(self):
        '''Learnable parameters of all layers, each listed once.'''
        result, seen = [], set()
        for layer in self.layers:
            for p in layer.params:
                if id(p) not in seen:
                    seen.add(id(p))
                    result.append(p)
        return result

    def find(self, which, param):
        '''Look up a parameter of one layer.

        Parameters
        ----------
        which : int or str
            Index of the layer (0 is the input layer) or its name.
        param : int or str
            Name of the parameter, like 'w' or 'b', or its index in the layer.

        Raises
        ------
        KeyError
            If the layer or the parameter does not exist.

        Returns
        -------
        param : :class:`Param <aenets.layers.Param>`
            The parameter.
        '''
        for i, layer in enumerate(self.layers):
            if which in (i, layer.name):
                return layer.find(param)
        raise KeyError(which)

    def feed_forward(self, x):
        '''Run a batch of examples through every layer.

        Parameters
        ----------
        x : ndarray (num-examples, num-variables)
            Input examples, one per row.

        Returns
        -------
        outputs : dict of ndarray
            Every array computed along the way, keyed by scoped output name.
            The reconstruction is under the output name of the last layer.
        '''
        outputs = {self.layers[0].output_name: np.asarray(x, dtype=util.FLOAT)}
        for layer in self.layers:
            outputs.update(layer.connect(outputs))
        return outputs

    def predict(self, x):
        '''Compute the network output for a batch of examples.

        Parameters
        ----------
        x : ndarray (num-examples, num-variables)
            Input examples, one per row.

        Returns
        -------
        y : ndarray (num-examples, num-outputs)
            Output of the last layer, one row per example.
        '''
        return self.feed_forward(x)[self.layers[-1].output_name]

    def evaluate(self, x, target, regularizers=()):
        '''Compute the loss of the network on some data.

        Parameters
        ----------
        x : ndarray (num-examples, num-variables)
            Input data for the network.
        target : ndarray (num-examples, num-outputs)
            Expected output data for the network.
        regularizers : list of :class:`aenets.regularizers.Regularizer`
            Regularizers to include in the loss.

        Returns
        -------
        monitors : dict
            A dictionary with the regularized loss under 'loss' and the
            unregularized loss under 'err'.
        '''
        outputs = self.feed_forward(x)
        return self._monitors(outputs, target, regularizers)

    def _monitors(self, outputs, target, regs):
        err = sum(l.weight * l(outputs, target) for l in self.losses)
        loss = err + sum(r.weight * r.loss(self.layers, outputs) for r in regs)
        return dict(loss=float(loss), err=float(err))

    def gradients(self, x, target, regularizers=()):
        '''Compute the loss and its gradient with respect to all parameters.

        Parameters
        ----------
        x : ndarray (num-examples, num-variables)
            Input data for the network.
        target : ndarray (num-examples, num-outputs)
            Expected output data for the network.
        regularizers : list of :class:`aenets.regularizers.Regularizer`
            Regularizers to include in the loss.

        Returns
        -------
        monitors : dict
            A dictionary with the regularized loss under 'loss' and the
            unregularized loss under 'err'.
        grads : list of (:class:`Param <aenets.layers.Param>`, ndarray)
            The gradient of the regularized loss for each parameter in the
            network, in the order of :attr:`params`.
        '''
        outputs = self.feed_forward(x)
        monitors = self._monitors(outputs, target, regularizers)

        grads = {}
        pgrads = {id(p): np.zeros_like(p.value) for p in self.params}

        def accumulate(name, g):
            grads[name] = grads[name] + g if name in grads else g

        for loss in self.losses:
            accumulate(loss.output_name,
                       loss.weight * loss.gradient(outputs, target))
        for reg in regularizers:
            ograds, params = reg.gradient(self.layers, outputs)
            for name, g in ograds.items():
                accumulate(name, reg.weight * g)
            for p, g in params:
                pgrads[id(p)] += reg.weight * g

        for layer in self.layers[::-1]:
            g = grads.get(layer.output_name)
            if g is None:
                continue
            dx, params = layer.backward(outputs, g)
            if dx is not None:
                accumulate(layer.input_name, dx)
            for p, pg in params:
                pgrads[id(p)] += pg

        return monitors, [(p, pgrads[id(p)]) for p in self.params]

    def snapshot(self):
        '''Get a copy of the current parameter values.

        Returns
        -------
        values : dict
            A dictionary mapping parameter names to copies of their values.
        '''
        return {p.name: p.get_value() for p in self.params}

    def regularizers(self, **kwargs):
        '''Build the regularizers named in a set of keyword arguments.

        See :func:`aenets.regularizers.from_kwargs`.
        '''
        return regularizers.from_kwargs(self, **kwargs)

    @staticmethod
    def _open(filename, mode):
        if filename.lower().endswith('.gz'):
            return gzip.open(filename, mode)
        return open(filename, mode)

    def save(self, filename):
        '''Pickle this network to a file, gzipped if the name ends in ".gz".'''
        with self._open(filename, 'wb') as handle:
            pickle.dump(self, handle, -1)
        logging.info('%s: saved %s', filename, self.__class__.__name__)

    @classmethod
    def load(cls, filename):
        '''Unpickle a network saved by :func:`save`.

        Parameters
        ----------
        filename : str
            Path of the pickle file. Files whose names end in ".gz" are
            decompressed while reading.

        Returns
        -------
        network : :class:`Network`
            The saved network, parameters included.
        '''
        with cls._open(filename, 'rb') as handle:
            model = pickle.load(handle)
        logging.info('%s: loaded %s', filename, model.__class__.__name__)
        return model
