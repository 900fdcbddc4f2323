#!/usr/bin/env python3
import os
import sys

from setuptools import setup


def main():
    """The main entry point."""
    if sys.version_info[:2] < (3, 8):
        sys.exit("cdfh5 currently requires Python 3.8+")
    with open(os.path.join(os.path.dirname(__file__), "README.md"), "r") as f:
        readme = f.read()
    skw = dict(
        name="cdfh5",
        description="CDF-style time-series containers written to HDF5",
        long_description=readme,
        long_description_content_type="text/markdown",
        license="MIT",
        version="0.1.0",
        platforms="Cross Platform",
        classifiers=["Programming Language :: Python :: 3"],
        packages=["cdfh5"],
        package_dir={"cdfh5": "cdfh5"},
        zip_safe=True,
        install_requires=["h5py >= 3.0", "numpy>=1.20", "numba>=0.53"],
        extras_require={"tests": ["pytest>=6.0", "pytest-cov"]},
    )
    setup(**skw)


if __name__ == "__main__":
    main()
