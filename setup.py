#!/usr/bin/env python

from setuptools import setup


VERSION = "0.1a1"

setup(
    name="pluck",
    version=VERSION,
    description="Queries HTML documents with CSS selectors and a subset of XPath.",
    license="AGPL-3.0-or-later",
    packages=["pluck", "_pluck", "_pluck.xpath"],
    python_requires=">=3.9",
    install_requires=["cssselect", "jmespath", "lxml"],
    extras_require={"test": ["pytest"]},
)
