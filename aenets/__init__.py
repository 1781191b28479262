'''This package groups together numpy code for training autoencoders.'''

from .feedforward import Autoencoder
from .graph import Network
from .losses import Loss
from .main import Experiment
from .regularizers import Regularizer

from . import corruption
from . import dataset
from . import layers
from . import scoring
from . import search
from . import trainer

__version__ = '0.1.0'
