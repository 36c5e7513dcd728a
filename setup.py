#!/usr/bin/env python
"""
Setup script for the association data store.

Installs the assocdb package and its dependencies from requirements.txt.

Usage:
    pip install -e .
    pip install -e ".[test]"
"""

from pathlib import Path

from setuptools import setup, find_packages


def read_requirements():
    """Read runtime dependencies, skipping comments and blank lines."""
    path = Path(__file__).parent / "requirements.txt"
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="assocdb",
    version="1.0.0",
    description="Season-scoped data store for association management",
    python_requires=">=3.9",
    packages=find_packages(include=["assocdb", "assocdb.*"]),
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
