#!/usr/bin/env python

'''Train an autoencoder on a .npy file and log its worst-reconstructed rows.'''

import aenets.main
import climate

if __name__ == '__main__':
    climate.call(aenets.main.rank)
