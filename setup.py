#! /usr/bin/python
# -*- coding: utf-8 -*-

from setuptools import find_packages, setup

setup(
    name="openshift-pipelines-release-tests",
    version="1.0",
    packages=find_packages(include=["utilities"]),
    install_requires=[
        "colorlog",
        "kubernetes",
        "openshift-python-wrapper",
        "pytest",
        "pytest-testconfig",
        "timeout-sampler",
    ],
    python_requires=">=3.10",
)
