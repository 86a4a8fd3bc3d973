#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
from codecs import open
from os import path

here = path.abspath(path.dirname(__file__))

# Get the long description from the README file
with open(path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='offlinekyc',
    version=__import__('offlinekyc').__version__,
    description='Verification of digital signatures embedded in offline identity XML exports.',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Security :: Cryptography',
        'Topic :: Text Processing :: Markup :: XML',
    ],
    keywords='cryptography pki x509 xml signature kyc',
    packages=find_packages(exclude=['examples', 'tests']),
    include_package_data=True,
    platforms=["all"],
    python_requires='>=3.8',
    install_requires=['cryptography', 'asn1crypto', 'lxml', 'attrs>=21.3'],
    entry_points={
        'console_scripts': ['offlinekyc=offlinekyc.cli:main'],
    },
    test_suite="tests",
)
