import os
import setuptools

README = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'README.rst')

setuptools.setup(
    name='aenets',
    version='0.1.0',
    packages=setuptools.find_packages(include=['aenets', 'aenets.*']),
    scripts=['scripts/aenets-rank.py'],
    description='Undercomplete, sparse and denoising autoencoders in numpy',
    long_description=open(README).read(),
    license='MIT',
    keywords=('machine-learning '
              'neural-network '
              'autoencoder '
              'sparse-autoencoder '
              'denoising-autoencoder '
              'anomaly-detection '
              ),
    install_requires=['climate', 'numpy'],
    extras_require={
        'test': ['pycodestyle', 'pytest'],
        'examples': ['click'],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        ],
    )
