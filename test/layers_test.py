import aenets
import numpy as np
import pytest

import util as u


class TestParam:
    def test_value(self):
        p = aenets.layers.Param(np.zeros((2, 3)), 'hid1.w')
        assert p.shape == (2, 3)
        assert p.ndim == 2
        v = p.get_value()
        v[0, 0] = 1
        assert p.value[0, 0] == 0

    def test_set_value(self):
        p = aenets.layers.Param(np.zeros((2, 3)), 'hid1.w')
        p.set_value(np.ones((2, 3)))
        assert np.allclose(p.value, 1)
        with pytest.raises(aenets.util.ConfigurationError):
            p.set_value(np.ones((3, 2)))


class TestFeedforward:
    def test_params(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        layer = net.layers[1]
        assert [p.name for p in layer.params] == ['hid1.w', 'hid1.b']
        assert layer.find('w').shape == (u.NUM_INPUTS, u.NUM_HID1)
        assert layer.find('b').shape == (u.NUM_HID1, )
        assert layer.find(1) is layer.find('b')
        with pytest.raises(KeyError):
            layer.find('x')

    def test_outputs(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        outputs = net.feed_forward(u.INPUTS)
        assert outputs['hid1:pre'].shape == (u.NUM_EXAMPLES, u.NUM_HID1)
        w = net.find('hid1', 'w').value
        b = net.find('hid1', 'b').value
        assert np.allclose(outputs['hid1:out'], np.tanh(u.INPUTS.dot(w) + b))

    def test_activations(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        assert [l.activate.name for l in net.layers[1:]] == [
            'tanh', 'tanh', 'tanh', 'linear']
        net = aenets.Autoencoder([3, (2, 'relu'), (3, 'logistic')])
        assert [l.activate.name for l in net.layers[1:]] == [
            'relu', 'logistic']

    def test_dict_spec(self):
        net = aenets.Autoencoder(
            [3, dict(size=2, activation='softplus', name='code'), 3])
        assert net.layers[1].name == 'code'
        assert net.layers[1].activate.name == 'softplus'
        assert net.find('code', 'w').shape == (3, 2)

    def test_to_spec(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        spec = net.layers[1].to_spec()
        assert spec['form'] == 'feedforward'
        assert spec['size'] == u.NUM_HID1
        assert spec['inputs'] == ('in:out', )


class TestTied:
    def test_shares_weights(self):
        net = aenets.Autoencoder(u.TIED_LAYERS)
        assert [l.size for l in net.layers] == [
            u.NUM_INPUTS, u.NUM_HID1, u.NUM_HID2, u.NUM_HID1, u.NUM_INPUTS]
        assert net.layers[3].partner is net.layers[2]
        assert net.layers[4].partner is net.layers[1]
        assert [p.name for p in net.layers[4].params] == ['out.b']

    def test_params(self):
        net = aenets.Autoencoder(u.TIED_LAYERS)
        assert [p.name for p in net.params] == [
            'hid1.w', 'hid1.b', 'hid2.w', 'hid2.b', 'hid3.b', 'out.b']

    def test_transform(self):
        net = aenets.Autoencoder([3, 2, (3, 'tied')])
        x = np.eye(3)
        w = net.find('hid1', 'w').value
        b = net.find('out', 'b').value
        h = np.tanh(x.dot(w) + net.find('hid1', 'b').value)
        assert np.allclose(net.predict(x), h.dot(w.T) + b)

    def test_no_partner(self):
        with pytest.raises(aenets.util.ConfigurationError):
            aenets.Network([3, (3, 'tied')])


class TestNetwork:
    def test_bad_sizes(self):
        with pytest.raises(aenets.util.ConfigurationError):
            aenets.Network([3, 0, 3])
        with pytest.raises(aenets.util.ConfigurationError):
            aenets.Network([3, (2, 'convolution'), 3])

    def test_input_width(self):
        net = aenets.Autoencoder([3, 2, 3])
        with pytest.raises(aenets.util.ConfigurationError):
            net.predict(np.zeros((4, 5)))

    def test_find(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        assert net.find(1, 'w') is net.find('hid1', 'w')
        with pytest.raises(KeyError):
            net.find('hid9', 'w')

    def test_snapshot(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        snap = net.snapshot()
        assert sorted(snap) == sorted(p.name for p in net.params)
        snap['hid1.w'][:] = 0
        assert not np.allclose(net.find('hid1', 'w').value, 0)

    def test_seeded_init(self):
        a = aenets.Autoencoder(u.AE_LAYERS, rng=3)
        b = aenets.Autoencoder(u.AE_LAYERS, rng=3)
        for pa, pb in zip(a.params, b.params):
            assert np.allclose(pa.value, pb.value)


@pytest.mark.parametrize('layers, kwargs', [
    (u.AE_LAYERS, {}),
    (u.TIED_LAYERS, {}),
    ([u.NUM_INPUTS, (4, 'relu'), (u.NUM_INPUTS, 'logistic')],
     dict(weight_l2=0.1)),
    ([u.NUM_INPUTS, (4, 'logistic'), u.NUM_INPUTS],
     dict(sparsity_beta=0.5, average_activation=0.1)),
    ([u.NUM_INPUTS, (4, 'logistic'), (u.NUM_INPUTS, 'tied')],
     dict(sparsity_beta=0.5, average_activation=0.1, sparsity_form='kl')),
    ([u.NUM_INPUTS, (5, 'softplus'), (3, 'logistic'), 5, u.NUM_INPUTS],
     dict(sparsity_beta=2, average_activation=0.3, weight_decay=0.01)),
])
def test_gradients(layers, kwargs):
    net = aenets.Autoencoder(layers)
    x = u.INPUTS[:10]
    regs = net.regularizers(**kwargs)
    _, grads = net.gradients(x, x, regs)
    assert [p for p, _ in grads] == net.params
    for param, grad in grads:
        expected = u.numeric_gradient(net, x, regs, param)
        assert np.allclose(grad, expected, rtol=1e-4, atol=1e-7), param.name
