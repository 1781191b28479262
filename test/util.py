'''Helper code for aenets unit tests.'''

import climate
import numpy as np

climate.enable_default_logging()

rng = np.random.RandomState(13)

NUM_EXAMPLES = 64
NUM_INPUTS = 7
NUM_HID1 = 8
NUM_HID2 = 3

INPUTS = rng.randn(NUM_EXAMPLES, NUM_INPUTS)
PIXELS = rng.randint(0, 256, size=(NUM_EXAMPLES, NUM_INPUTS)).astype('f')
LABELS = rng.randint(10, size=NUM_EXAMPLES)

AE_LAYERS = [NUM_INPUTS, NUM_HID1, NUM_HID2, NUM_HID1, NUM_INPUTS]
TIED_LAYERS = [NUM_INPUTS, NUM_HID1, NUM_HID2,
               (NUM_HID1, 'tied'), (NUM_INPUTS, 'tied')]


def low_rank(num_examples, num_inputs, rank=2, noise=0.05, seed=5):
    '''Create data lying near a low-dimensional linear subspace.'''
    r = np.random.RandomState(seed)
    basis = r.randn(rank, num_inputs)
    return (np.dot(r.randn(num_examples, rank), basis) +
            noise * r.randn(num_examples, num_inputs))


def assert_progress(model, data, algo='sgd', **kwargs):
    kwargs.setdefault('epochs', 10)
    kwargs.setdefault('batch_size', 8)
    kwargs.setdefault('learning_rate', 0.05)
    kwargs.setdefault('momentum', 0.5)
    before = model.evaluate(data, data)['err']
    model.train(data, algo=algo, **kwargs)
    after = model.evaluate(data, data)['err']
    assert after < before  # should have made progress!


def assert_shape(actual, expected):
    if not isinstance(expected, tuple):
        expected = (NUM_EXAMPLES, expected)
    assert actual == expected


def numeric_gradient(net, x, regs, param, eps=1e-6):
    '''Estimate the gradient of the loss for a parameter by central differences.'''
    grad = np.zeros_like(param.value)
    for idx in np.ndindex(*param.shape):
        orig = param.value[idx]
        param.value[idx] = orig + eps
        up = net.evaluate(x, x, regs)['loss']
        param.value[idx] = orig - eps
        down = net.evaluate(x, x, regs)['loss']
        param.value[idx] = orig
        grad[idx] = (up - down) / (2 * eps)
    return grad
