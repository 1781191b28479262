import aenets
import numpy as np
import pytest

OUTPUTS = {'out:out': np.array([[1., 2., 3.], [0., 0., 0.]])}
TARGET = np.array([[1., 0., 0.], [0., 3., 0.]])


def test_mse():
    loss = aenets.Loss.build('mse')
    assert loss.output_name == 'out:out'
    assert np.allclose(loss.per_example(OUTPUTS, TARGET), [13 / 3, 3])
    assert np.allclose(loss(OUTPUTS, TARGET), (13 + 9) / 6)


def test_mae():
    loss = aenets.Loss.build('MAE')
    assert np.allclose(loss.per_example(OUTPUTS, TARGET), [5 / 3, 1])
    assert np.allclose(loss(OUTPUTS, TARGET), 8 / 6)


@pytest.mark.parametrize('form', ['mse', 'mae'])
def test_gradient(form):
    loss = aenets.Loss.build(form)
    eps = 1e-6
    out = OUTPUTS['out:out'] + 0.25
    grad = loss.gradient({'out:out': out}, TARGET)
    for idx in np.ndindex(*out.shape):
        up, down = out.copy(), out.copy()
        up[idx] += eps
        down[idx] -= eps
        expected = (loss({'out:out': up}, TARGET) -
                    loss({'out:out': down}, TARGET)) / (2 * eps)
        assert np.allclose(grad[idx], expected, atol=1e-6)


def test_output_name():
    loss = aenets.Loss.build('mse', output_name='hid1')
    assert loss.output_name == 'hid1:out'


def test_network_loss():
    net = aenets.Autoencoder([3, 2, 3], loss='mae')
    assert isinstance(net.losses[0], aenets.losses.MeanAbsoluteError)
    with pytest.raises(aenets.util.ConfigurationError):
        aenets.Autoencoder([3, 2, 3], loss='hinge')
