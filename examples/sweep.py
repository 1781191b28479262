#!/usr/bin/env python

'''Hyperparameter sweep example using synthetic "image" data.

This example trains one autoencoder for each combination of a few code sizes
and sparsity weights, several at a time, and reports the configurations in
order of their validation error.
'''

import aenets
import click
import climate

from utils import load_blobs

logging = climate.get_logger('sweep')


@click.command()
@click.option('--workers', default=2, type=int, metavar='N',
              help='Train N configurations at once.')
@click.option('--epochs', default=10, type=int, metavar='N',
              help='Train each configuration for N epochs.')
def main(workers, epochs):
    data, _ = load_blobs(num_outliers=0)
    train, valid = aenets.dataset.split(data / 255., rng=1)

    configs = aenets.search.grid(
        hidden=[(16, 2), (16, 4), (32, 8)],
        sparsity_beta=[0, 0.1])
    ranked = aenets.search.search(
        train, configs, valid=valid, workers=workers,
        algo='rmsprop', epochs=epochs, batch_size=32,
        average_activation=0.05)

    for r in ranked:
        logging.info('%.6f %s', r.metric, r.config)


if __name__ == '__main__':
    main()
