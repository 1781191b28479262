import aenets
import logging
import numpy as np
import pytest

import util as u


class TestAutoencoder:
    def test_build(self):
        net = aenets.Autoencoder.build(784, hidden=(50, 2))
        assert [l.size for l in net.layers] == [784, 50, 2, 50, 784]
        assert [l.activate.name for l in net.layers[1:]] == [
            'tanh', 'tanh', 'tanh', 'linear']
        assert net.code_layer.name == 'hid2'

    def test_build_tied(self):
        net = aenets.Autoencoder.build(
            10, hidden=3, activation='logistic', tied=True)
        assert [l.size for l in net.layers] == [10, 3, 10]
        assert isinstance(net.layers[-1], aenets.layers.Tied)
        assert net.layers[1].activate.name == 'logistic'
        assert [p.name for p in net.params] == ['hid1.w', 'hid1.b', 'out.b']

    def test_build_needs_hidden(self):
        with pytest.raises(aenets.util.ConfigurationError):
            aenets.Autoencoder.build(10, hidden=())

    def test_output_size(self):
        with pytest.raises(aenets.util.ConfigurationError):
            aenets.Autoencoder([4, 2, 3])

    def test_overcomplete_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            aenets.Autoencoder([4, 6, 4])
        assert 'not undercomplete' in caplog.text

    def test_undercomplete_quiet(self, caplog):
        with caplog.at_level(logging.WARNING):
            aenets.Autoencoder(u.AE_LAYERS)
        assert 'not undercomplete' not in caplog.text

    def test_forward_single(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        code, rec = net.forward(u.INPUTS[0])
        assert code.shape == (u.NUM_HID2, )
        assert rec.shape == (u.NUM_INPUTS, )
        assert np.allclose(rec, net.predict(u.INPUTS[:1])[0])

    def test_forward_batch(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        code, rec = net.forward(u.INPUTS)
        u.assert_shape(code.shape, u.NUM_HID2)
        u.assert_shape(rec.shape, u.NUM_INPUTS)
        assert np.all(abs(code) <= 1)

    def test_encode_decode(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        z = net.encode(u.INPUTS)
        u.assert_shape(z.shape, u.NUM_HID2)
        assert np.allclose(net.decode(z), net.predict(u.INPUTS))
        h = net.encode(u.INPUTS, 'hid1')
        u.assert_shape(h.shape, u.NUM_HID1)
        assert np.allclose(net.decode(h, 1), net.predict(u.INPUTS))

    def test_reconstruction_error(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        err = net.reconstruction_error(u.INPUTS)
        assert err.shape == (u.NUM_EXAMPLES, )
        assert np.all(err >= 0)
        assert np.isclose(err.mean(), net.evaluate(u.INPUTS, u.INPUTS)['err'])

    def test_identity(self):
        net = aenets.Autoencoder(
            [4, (4, 'linear'), (4, 'linear')], rng=2)
        x = u.INPUTS[:32, :4]
        before = net.evaluate(x, x)['err']
        net.train(x, algo='sgd', epochs=2000, batch_size=32,
                  learning_rate=0.1, momentum=0.9)
        after = net.evaluate(x, x)['err']
        assert after < 1e-3 * before

    def test_save_load(self, tmpdir):
        net = aenets.Autoencoder(u.TIED_LAYERS)
        for name in ('model.pkl', 'model.pkl.gz'):
            path = str(tmpdir.join(name))
            net.save(path)
            loaded = aenets.Network.load(path)
            assert isinstance(loaded, aenets.Autoencoder)
            assert loaded.layers[-1].partner is loaded.layers[1]
            assert np.allclose(loaded.predict(u.INPUTS), net.predict(u.INPUTS))
