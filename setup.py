#!/usr/bin/env python

from setuptools import setup, find_packages

exec(open('hpxmoc/version.py').read())

setup(name='hpxmoc',
    packages=find_packages(),
    version=__version__,
    description='HEALPix MOC parsing, manipulation and serialization in Python',
    license='BSD',
    python_requires='>=3.8',
    install_requires=['numpy',
        'astropy', # Units, coordinates and FITS serialization
        'astropy_healpix', # RING scheme and NESTED <-> RING conversions
        'cdshealpix', # NESTED positions, neighbours and cone search
        'lark', # Used in from_str for parsing the string given and create the MOC from it
    ],
    extras_require={
        'test': ['pytest'],
    },
    provides=['hpxmoc'],
    long_description="hpxmoc is a Python library allowing the creation \
     and manipulation of HEALPix MOCs (Multi-Order Coverage maps). \
     MOC is an `IVOA standard <http://ivoa.net/documents/MOC/>` \
     enabling description of arbitrary sky regions. \
     Based on the HEALPix sky tessellation, it maps regions on the sky \
     into hierarchically grouped predefined cells.\n \
     MOCs can be read from and written to the ASCII, JSON and FITS serializations of the standard.",
    classifiers=[
        'Development Status :: 4 - Beta',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: BSD License',
        'Topic :: Scientific/Engineering :: Astronomy',
    ],
    zip_safe=False,
)
