#!/usr/bin/env python

from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name="distinction",
    version="0.1.0",
    description="Distinct-element estimation for data streams with the CVM sampling algorithm",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.8',
    install_requires=[
        "numpy",
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'hypothesis>=6.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'distinction=distinction.distinction:main',
        ],
    },
)
