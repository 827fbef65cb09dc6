#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup

requirements = [
    'pan-python>=0.26.0',
    'requests',
]

test_requirements = [
    'pytest',
]

setup(
    name='panclient',
    version='0.1.0',
    description='Session and configuration client for the PAN-OS XML API',
    long_description='panclient talks to Palo Alto Networks firewalls and Panorama over the XML API. It manages a session per device, chooses the configuration schema from the device software and plugin versions, and offers create, read, update, delete and move operations on configuration entries, along with commits, jobs, locks, User-ID, licensing and predefined objects.',
    author='Palo Alto Networks',
    author_email='techpartners@paloaltonetworks.com',
    packages=[
        'panclient',
    ],
    package_dir={'panclient':
                 'panclient'},
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        'test': test_requirements,
    },
    python_requires='>=3.6',
    license="ISC",
    zip_safe=False,
    keywords='panos panorama xmlapi',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: ISC License (ISCL)',
        'Natural Language :: English',
        "Programming Language :: Python :: 3",
    ],
)
