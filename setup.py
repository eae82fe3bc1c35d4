"""Package configuration for the tval3d module."""

from setuptools import setup, find_packages

setup(name='tval3d',
      version='1.0',
      description='TV regularized tomographic reconstruction (TVAL3)',
      packages=find_packages(exclude=['tests', 'samples']),
      python_requires='>=3.9',
      install_requires=[
          'numpy', 'scipy>=1.12', 'matplotlib', 'imageio>=2.16',
      ],
      extras_require={
          'test': ['pytest'],
          'astra': ['astra-toolbox'],
      },
      zip_safe=False)
