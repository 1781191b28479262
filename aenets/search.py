# -*- coding: utf-8 -*-

'''Hyperparameter sweeps over autoencoder configurations.

A sweep trains one independent :class:`Autoencoder
<aenets.feedforward.Autoencoder>` per configuration and ranks the
configurations by reconstruction error on held-out data. Runs share no mutable
state, so they can be trained on several worker threads at once.

>>> configs = aenets.search.grid(hidden=[(50, 2), (100, 2)],
...                              sparsity_beta=[0, 0.1])
>>> ranked = aenets.search.search(train, configs, valid=valid, epochs=20)
>>> best = ranked[0]
>>> best.config, best.metric
'''

import climate
import concurrent.futures
import itertools
import numpy as np

from . import feedforward
from . import util

logging = climate.get_logger(__name__)

ARCHITECTURE = ('hidden', 'activation', 'output_activation', 'tied', 'loss')
'''Configuration keys that describe the model rather than its training.'''


def grid(**candidates):
    '''Enumerate the cartesian product of candidate hyperparameter values.

    Keyword arguments map hyperparameter names to sequences of candidate
    values. Configurations are generated in keyword order, with the last
    keyword varying fastest.

    Returns
    -------
    configs : list of dict
        One dictionary per combination of candidate values.
    '''
    keys = list(candidates)
    values = [list(candidates[k]) for k in keys]
    return [dict(zip(keys, combo)) for combo in itertools.product(*values)]


class Result(object):
    '''The outcome of training one configuration in a sweep.

    Attributes
    ----------
    index : int
        Position of the configuration in the sweep's input.
    config : dict
        The configuration, including sweep-wide defaults.
    network : :class:`aenets.feedforward.Autoencoder`
        The trained model, or None if the model could not be built.
    train : dict
        Final training monitors.
    valid : dict
        Final validation monitors.
    error : Exception
        The error that ended this run, or None if training finished.
    '''

    def __init__(self, index, config, network=None, train=None, valid=None,
                 error=None):
        self.index = index
        self.config = config
        self.network = network
        self.train = train
        self.valid = valid
        self.error = error

    @property
    def failed(self):
        return self.error is not None

    @property
    def metric(self):
        '''Validation reconstruction error of the trained model.'''
        return self.valid['err'] if self.valid else None

    def __repr__(self):
        if self.failed:
            return 'Result({}, {}, failed: {})'.format(
                self.index, self.config, self.error)
        return 'Result({}, {}, err={:.6g})'.format(
            self.index, self.config, self.metric)


class GridSearch(object):
    '''Train and rank a set of autoencoder configurations.

    Parameters
    ----------
    configs : sequence of dict
        Configurations to train. Keys named in :data:`ARCHITECTURE` (plus
        ``rng``) are used to :func:`build
        <aenets.feedforward.Autoencoder.build>` the model; all other keys are
        passed to :func:`train <aenets.graph.Network.train>`.
    defaults : dict
        Values used for any key a configuration does not set.

    Attributes
    ----------
    results : list of :class:`Result`
        All finished runs, in configuration order, after :func:`run`.
    failures : list of :class:`Result`
        Runs that ended with an error, in configuration order.
    '''

    def __init__(self, configs, **defaults):
        self.configs = [dict(defaults, **c) for c in configs]
        self.results = []
        self.failures = []

    def run(self, train, valid=None, workers=1, stop=None):
        '''Train every configuration and rank the results.

        Parameters
        ----------
        train : ndarray (num-examples, num-variables)
            Training data shared by all runs.
        valid : ndarray (num-examples, num-variables), optional
            Held-out data for ranking. Defaults to the training data.
        workers : int, optional
            Number of runs to train concurrently. Defaults to 1.
        stop : :class:`threading.Event`, optional
            If this is set, runs that have not yet started are skipped. Runs
            already in progress finish normally.

        Raises
        ------
        ConfigurationError :
            If the data are malformed. This happens before any run starts.

        Returns
        -------
        ranked : list of :class:`Result`
            Successful runs sorted by ascending validation error, ties broken
            by configuration order.
        '''
        train = util.as_matrix(train, 'train')
        valid = train if valid is None else util.as_matrix(valid, 'valid')
        if valid.shape[1] != train.shape[1]:
            raise util.ConfigurationError(
                'valid has {} variables, train has {}'.format(
                    valid.shape[1], train.shape[1]))

        logging.info('sweep: %d configurations on %d workers',
                     len(self.configs), workers)

        seeds = self._seeds()

        def job(index):
            if stop is not None and stop.is_set():
                logging.info('sweep: skipping run %d', index)
                return None
            return self._train(index, train, valid, seeds[index])

        if workers > 1:
            with concurrent.futures.ThreadPoolExecutor(workers) as pool:
                results = list(pool.map(job, range(len(self.configs))))
        else:
            results = [job(i) for i in range(len(self.configs))]

        self.results = [r for r in results if r is not None]
        self.failures = [r for r in self.results if r.failed]
        ranked = sorted((r for r in self.results if not r.failed),
                        key=lambda r: (r.metric, r.index))
        logging.info('sweep: %d ranked, %d failed, %d skipped',
                     len(ranked), len(self.failures),
                     len(self.configs) - len(self.results))
        return ranked

    def _seeds(self):
        '''Turn the configured random sources into integer seeds.

        Runs must not share a RandomState, so each one seeds its own. A
        RandomState given in the configurations is drawn from once, whatever
        the number of configurations using it, which keeps a run's result the
        same inside a sweep as on its own.
        '''
        drawn = {}
        seeds = []
        for config in self.configs:
            rng = config.get('rng')
            if rng is not None and not isinstance(rng, (int, np.integer)):
                if id(rng) not in drawn:
                    drawn[id(rng)] = int(util.random_state(rng).randint(2 ** 31))
                rng = drawn[id(rng)]
            seeds.append(rng)
        return seeds

    def _train(self, index, train, valid, seed):
        config = self.configs[index]
        arch = {k: v for k, v in config.items() if k in ARCHITECTURE}
        kwargs = {k: v for k, v in config.items() if k not in ARCHITECTURE}
        if seed is not None:
            arch['rng'] = kwargs['rng'] = seed
        result = Result(index, config)
        try:
            result.network = feedforward.Autoencoder.build(
                train.shape[1], **arch)
            result.train, result.valid = result.network.train(
                train, valid, **kwargs)
        except (util.Error, TypeError, ValueError) as err:
            logging.warning('sweep: run %d %s failed: %s', index, config, err)
            result.error = err
            return result
        logging.info('sweep: run %d %s: valid err=%.6g',
                     index, config, result.metric)
        return result


def search(train, configs, valid=None, workers=1, stop=None, **defaults):
    '''Train and rank a set of configurations in one call.

    See :class:`GridSearch`.

    Returns
    -------
    ranked : list of :class:`Result`
        Successful runs sorted by ascending validation error.
    '''
    return GridSearch(configs, **defaults).run(
        train, valid=valid, workers=workers, stop=stop)
