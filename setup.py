#!/usr/bin/env python3
"""addonmgr - Setup"""

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

setup(
    name="addonmgr",
    version="1.0.0",
    description="Addon catalog and runtime registry for plugins, applications, themes and locales",
    author="addonmgr Team",
    packages=find_packages(include=["addonmgr", "addonmgr.*"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "addonmgr=addonmgr.main:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
