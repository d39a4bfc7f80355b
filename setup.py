#!/usr/bin/env python3
"""
Compatibility shim for pip install -e .

Installs the rawadf package from src/ together with the rawadf console
script.
"""

from setuptools import setup, find_packages

setup(
    name="rawadf",
    version="1.0.0",
    description="Merge, split and compare Extended (raw) ADF floppy disk images",
    license="GPL-3.0-or-later",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.5.0",
        "rich>=13.7.0",
        "numpy>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "rawadf=rawadf.main:main",
        ],
    },
)
