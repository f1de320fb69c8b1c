from setuptools import find_packages, setup

DESCRIPTION = 'Parallel reductions of NetCDF variables over named dimensions.'

with open('README.md') as f:
    LONG_DESCRIPTION = f.read()

dependencies = [
    'asciitree',
    'numpy>=1.26',
    'fasteners',
    'numcodecs>=0.12',
    'donfig>=0.8',
    'typer>=0.12',
    'netCDF4>=1.6',
]

setup(
    name='ncfold',
    version='0.3.0',
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    setup_requires=[
        'setuptools>=61',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    python_requires='>=3.11, <4',
    install_requires=dependencies,
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    entry_points={
        'console_scripts': [
            'ncfold=ncfold._cli.cli:app',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Topic :: Scientific/Engineering :: Atmospheric Science',
        'Operating System :: Unix',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
    ],
    license='MIT',
)
