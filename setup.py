#!/usr/bin/env python

from setuptools import setup, find_packages

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name="basichll",
    version="0.1.0",
    description="HyperLogLog distinct-count estimation with mergeable estimators",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "benchmarks"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.7',
    install_requires=[
        "numpy",
        "matplotlib",
        "xxhash",
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'basichll=basichll.basichll:main',
        ],
    },
)
