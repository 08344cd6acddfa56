#!/usr/bin/env python

"""The setup script."""

from setuptools import find_packages, setup

with open("README.rst") as readme_file:
    readme = readme_file.read()

with open("HISTORY.rst") as history_file:
    history = history_file.read()

requirements = [
    "Click>=7.0",
    "rich>=13.0.0",
    "jsonschema>=4.0.0",
    "pyyaml>=5.0",
    "pandas>=1.3",
    "psycopg[binary]>=3.1",
    "psycopg-pool>=3.1",
]

test_requirements = [
    "pytest>=3",
]

setup(
    author="biodb developers",
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: Apache Software License",
        "Natural Language :: English",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    description="Store and query biological sequence collections in SQLite or PostgreSQL",
    entry_points={
        "console_scripts": [
            "biodb=biodb.cli:cli",
        ],
    },
    install_requires=requirements,
    extras_require={
        "test": test_requirements,
    },
    license="Apache Software License 2.0",
    long_description=readme + "\n\n" + history,
    include_package_data=True,
    keywords=["biodb", "fasta", "uniprot", "sequences", "sqlite", "postgres"],
    name="biodb",
    packages=find_packages(include=["biodb", "biodb.*"]),
    test_suite="tests",
    tests_require=test_requirements,
    version='0.3.0',
    zip_safe=False,
)
