'''Glue for the common create, train and rank workflow.

:class:`Experiment` holds one model and forwards the everyday calls to it.
:func:`rank` is the command-line entry point built on top of it.
'''

import climate
import numpy as np
import os

from . import feedforward
from . import graph
from . import scoring

logging = climate.get_logger(__name__)


class Experiment:
    '''Hold a model and run training and scoring tasks on it.

    Parameters
    ----------
    network : :class:`Network <aenets.graph.Network>` or str or callable
        The model to use. A path to an existing file is loaded with
        :func:`load`. A network instance is used as-is. Anything else is
        called with the remaining arguments to construct the model, so a
        class like :class:`aenets.Autoencoder` works here.
    '''

    def __init__(self, network, *args, **kwargs):
        if isinstance(network, graph.Network):
            self.network = network
        elif isinstance(network, str) and os.path.isfile(network):
            self.load(network)
        else:
            assert network is not graph.Network, \
                'use a concrete network class like aenets.Autoencoder'
            self.network = network(*args, **kwargs)

    def train(self, *args, **kwargs):
        '''Train to completion, see :func:`aenets.graph.Network.train`.

        Returns
        -------
        training : dict
            Final monitor values on the training data.
        validation : dict
            Final monitor values on the validation data.
        '''
        return self.network.train(*args, **kwargs)

    def itertrain(self, *args, **kwargs):
        '''Yield monitors epoch by epoch, see :func:`aenets.graph.Network.itertrain`.'''
        return self.network.itertrain(*args, **kwargs)

    def score(self, data):
        '''Rank examples by reconstruction error, see :func:`aenets.scoring.score`.'''
        return scoring.score(self.network, data)

    def top_k(self, data, k):
        '''Get the worst-reconstructed examples, see :func:`aenets.scoring.top_k`.'''
        return scoring.top_k(self.network, data, k)

    def save(self, path):
        '''Pickle the model to ``path``, gzipped if it ends in ".gz".'''
        self.network.save(path)

    def load(self, path):
        '''Replace the model with one pickled at ``path`` and return it.'''
        self.network = graph.Network.load(path)
        return self.network


@climate.annotate(
    source='load examples (one per row) from this .npy FILE',
    hidden=('encoder layer sizes, comma separated', 'option', 'n', str),
    activation=('hidden layer activation', 'option', 'g', str),
    epochs=('train for N epochs', 'option', 'e', int),
    learning_rate=('learning rate', 'option', 'l', float),
    batch_size=('mini-batch size', 'option', 'b', int),
    sparsity_beta=('weight of the code sparsity penalty', 'option', None, float),
    average_activation=('target code activation', 'option', None, float),
    corruption=('input corruption: onoff or gaussian', 'option', 'c', str),
    corruption_rate=('fraction of inputs to corrupt', 'option', None, float),
    top=('log the K worst-reconstructed rows', 'option', 'k', int),
    save=('save the trained model to FILE', 'option', 's', str),
)
def rank(source, hidden='64,2', activation='tanh', epochs=50,
         learning_rate=0.01, batch_size=32, sparsity_beta=0.,
         average_activation=0., corruption=None, corruption_rate=0.3,
         top=10, save=None):
    '''Train an autoencoder on a data file and rank its rows by error.'''
    data = np.load(source)
    data = data.reshape((len(data), -1))
    exp = Experiment(feedforward.Autoencoder.build(
        data.shape[1],
        hidden=[int(n) for n in hidden.split(',')],
        activation=activation))
    kwargs = dict(epochs=epochs,
                  learning_rate=learning_rate,
                  batch_size=batch_size)
    if sparsity_beta:
        kwargs.update(sparsity_beta=sparsity_beta,
                      average_activation=average_activation)
    if corruption:
        kwargs.update(corruption=corruption, corruption_rate=corruption_rate)
    train, valid = exp.train(data, **kwargs)
    logging.info('trained: train err=%.6g valid err=%.6g',
                 train['err'], valid['err'])
    ranking = exp.top_k(data, top)
    for i, err in ranking:
        logging.info('row %d: reconstruction error %.6g', i, err)
    if save:
        exp.save(save)
    return ranking
