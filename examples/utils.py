import climate
import numpy as np

logging = climate.get_logger(__name__)

climate.enable_default_logging()


def load_blobs(num_normal=1000, num_outliers=20, size=64, seed=13):
    '''Create "image-like" data with a handful of outliers mixed in.

    Normal examples are smooth random bumps rendered on a 1-D grid of ``size``
    pixels with intensities in [0, 255]. Outliers are uniform noise. Returns
    the shuffled data and a boolean array marking the outliers.
    '''
    rng = np.random.RandomState(seed)
    grid = np.linspace(0, 1, size)
    centers = rng.uniform(0.2, 0.8, size=(num_normal, 1))
    widths = rng.uniform(0.05, 0.15, size=(num_normal, 1))
    normal = 255 * np.exp(-((grid - centers) / widths) ** 2)
    outliers = rng.uniform(0, 255, size=(num_outliers, size))
    data = np.vstack([normal, outliers])
    is_outlier = np.arange(len(data)) >= num_normal
    order = rng.permutation(len(data))
    logging.info('created %d examples, %d outliers', len(data), num_outliers)
    return np.rint(data[order]), is_outlier[order]
