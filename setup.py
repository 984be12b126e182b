"""
Setup script for bayes-simfit package
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_file(filename):
    filepath = os.path.join(os.path.dirname(__file__), filename)
    if not os.path.exists(filepath):
        return ''
    with open(filepath, encoding='utf-8') as f:
        return f.read()

setup(
    name='bayes-simfit',
    version='0.1.0',
    description='Simulate data from Bayesian models with known parameters and recover them by MCMC',
    long_description=read_file('README.md'),
    long_description_content_type='text/markdown',
    license='MIT',

    # Package discovery from src/
    packages=find_packages(where="src"),
    package_dir={"": "src"},

    python_requires='>=3.10',

    install_requires=[
        'numpy>=1.24.0',
        'scipy>=1.10.0',
        'pandas>=1.5.0',
        'tqdm>=4.62.0',
        'pymc>=5.16.0',
        'pytensor>=2.20.0',
        'arviz>=0.17.0,<1.0',
        'matplotlib>=3.5.0',
        'seaborn>=0.11.0',
    ],

    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=3.0.0',
            'black>=22.0.0',
            'flake8>=4.0.0',
        ],
    },

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Mathematics',
    ],

    keywords='bayesian mcmc pymc simulation capture-recapture cormack-jolly-seber parameter-recovery',
)
