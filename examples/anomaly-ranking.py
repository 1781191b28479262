#!/usr/bin/env python

'''Anomaly ranking example using synthetic "image" data.

This example trains a denoising autoencoder on data containing a few outliers,
then ranks all examples by reconstruction error. Outliers should rise to the
top of the ranking.

This example also shows the use of command-line arguments.
'''

import aenets
import click
import climate

from utils import load_blobs

logging = climate.get_logger('anomaly-ranking')


@click.command()
@click.option('--code', default=4, type=int, metavar='N',
              help='Train a model with N code units.')
@click.option('--corruption', default='gaussian',
              type=click.Choice(['none', 'onoff', 'gaussian']),
              help='Corrupt training inputs with this policy.')
@click.option('--epochs', default=30, type=int, metavar='N',
              help='Train for N epochs.')
@click.option('--top', default=20, type=int, metavar='K',
              help='Report the K worst-reconstructed examples.')
def main(code, corruption, epochs, top):
    data, is_outlier = load_blobs()
    train, valid = aenets.dataset.split(data, fraction=0.1, rng=1)

    kwargs = {}
    if corruption != 'none':
        kwargs.update(corruption=corruption, corruption_rate=0.2)

    # pixels are scaled to [0, 1], so clamp and round corrupted values to match.
    scale = 255.
    net = aenets.Autoencoder.build(data.shape[1], hidden=(32, code))
    net.train(train / scale, valid / scale,
              algo='rmsprop',
              epochs=epochs,
              batch_size=32,
              corruption_low=0,
              corruption_high=1,
              corruption_step=1 / scale,
              **kwargs)

    ranking = aenets.scoring.top_k(net, data / scale, top)
    found = sum(is_outlier[i] for i, _ in ranking)
    for i, err in ranking:
        logging.info('example %d: error %.4f%s',
                     i, err, ' (outlier)' if is_outlier[i] else '')
    logging.info('%d of the top %d examples are outliers', found, len(ranking))


if __name__ == '__main__':
    main()
