import aenets
import numpy as np
import pytest

import util as u

from aenets import regularizers


class TestFromKwargs:
    def test_empty(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        assert regularizers.from_kwargs(net) == []
        assert regularizers.from_kwargs(net, weight_l2=0) == []

    def test_named(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        regs = regularizers.from_kwargs(
            net, weight_decay=0.1, hidden_l1=dict(weight=2, pattern='hid1:*'))
        kinds = sorted(r.__class__.__name__ for r in regs)
        assert kinds == ['HiddenL1', 'WeightL2']
        l1 = [r for r in regs if isinstance(r, regularizers.HiddenL1)][0]
        assert l1.weight == 2
        assert l1.pattern == 'hid1:*'

    def test_list(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        regs = [regularizers.WeightL1(weight=0.3)]
        assert regularizers.from_kwargs(net, regularizers=regs) is regs

    def test_sparsity(self):
        net = aenets.Autoencoder(u.AE_LAYERS)
        regs = net.regularizers(sparsity_beta=0.5, average_activation=0.05)
        assert len(regs) == 1
        reg = regs[0]
        assert isinstance(reg, regularizers.Sparsity)
        assert reg.pattern == 'hid2:out'
        assert reg.weight == 0.5
        assert reg.target == 0.05
        assert reg.form == 'squared'


class TestSparsity:
    OUTPUTS = {'hid1:out': np.array([[0.1, 0.5], [0.3, 0.9]])}

    def test_squared(self):
        reg = regularizers.Sparsity('hid1:out', weight=1, target=0.2)
        # mean activations are 0.2 and 0.7
        assert np.allclose(reg.loss([], self.OUTPUTS), (0 + 0.25) / 2)

    def test_kl(self):
        reg = regularizers.Sparsity('hid1:out', weight=1, target=0.2, form='kl')
        expected = (0.2 * np.log(0.2 / 0.7) + 0.8 * np.log(0.8 / 0.3))
        assert np.allclose(reg.loss([], self.OUTPUTS), expected)

    def test_kl_clips(self):
        reg = regularizers.Sparsity('hid1:out', weight=1, target=0.2, form='kl')
        outputs = {'hid1:out': np.zeros((3, 2))}
        assert np.isfinite(reg.loss([], outputs))
        grads, _ = reg.gradient([], outputs)
        assert np.all(np.isfinite(grads['hid1:out']))

    def test_at_target(self):
        reg = regularizers.Sparsity('hid1:out', weight=1, target=0.5)
        outputs = {'hid1:out': np.full((4, 3), 0.5)}
        assert reg.loss([], outputs) == 0
        grads, _ = reg.gradient([], outputs)
        assert np.allclose(grads['hid1:out'], 0)

    def test_bad_config(self):
        with pytest.raises(aenets.util.ConfigurationError):
            regularizers.Sparsity(target=0.1, form='hoyer')
        with pytest.raises(aenets.util.ConfigurationError):
            regularizers.Sparsity(target=0, form='kl')

    def test_drives_activation(self):
        net = aenets.Autoencoder([u.NUM_INPUTS, (4, 'logistic'), u.NUM_INPUTS])
        target = 0.05

        def deviation():
            return abs(net.encode(u.INPUTS).mean() - target)

        before = deviation()
        net.train(u.INPUTS, epochs=20, batch_size=8, learning_rate=0.1,
                  momentum=0.5, sparsity_beta=5, average_activation=target)
        assert deviation() < before


@pytest.mark.parametrize('kwargs', [
    dict(weight_l1=0.1),
    dict(weight_l2=0.1),
    dict(hidden_l1=0.1),
    dict(sparsity_beta=0.1, average_activation=0.),
])
def test_progress(kwargs):
    net = aenets.Autoencoder(u.AE_LAYERS)
    u.assert_progress(net, u.INPUTS, **kwargs)


def test_weight_decay_shrinks():
    plain = aenets.Autoencoder(u.AE_LAYERS, rng=7)
    decayed = aenets.Autoencoder(u.AE_LAYERS, rng=7)
    plain.train(u.INPUTS, epochs=5, batch_size=8, rng=1)
    decayed.train(u.INPUTS, epochs=5, batch_size=8, rng=1, weight_l2=10)

    def norm(net):
        return sum((p.value ** 2).sum() for p in net.params if p.ndim == 2)

    assert norm(decayed) < norm(plain)
