# -*- coding: utf-8 -*-
from os.path import (dirname, join)
from setuptools import (find_packages, setup)


__version__ = open(join(dirname(__file__), 'rrtmgpy', 'VERSION')).read().strip()

with open(join(dirname(__file__), 'README.md')) as f:
    long_description = f.read()

setup(
    name='rrtmgpy',
    author='The rrtmgpy developers',
    version=__version__,
    packages=find_packages(),
    license='MIT',
    description='Correlated-k gas optics and two-stream radiative transfer '
                'for many atmospheric columns.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    classifiers=[
        # See https://pypi.python.org/pypi?%3Aaction=list_classifiers
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.6',
    include_package_data=True,
    package_data={
        'rrtmgpy': ['VERSION'],
    },
    install_requires=[
        'matplotlib>=2.0.0',
        'netcdf4>=1.2.7',
        'numpy>=1.16.0',
        'scipy>=0.19.0',
        'typhon>=0.7.0',
        'xarray>=0.9.1',
    ],
    extras_require={
        'docs': [
            'sphinx',
            'sphinx_rtd_theme',
        ],
        'tests': [
            'pytest',
        ],
    },
)
