#!/usr/bin/env python3
"""
tylang Programming Language
A small expression language compiled to native code with LLVM.
"""

from setuptools import setup, find_packages
import os
import re
import sys

# Ensure Python 3.10+
if sys.version_info < (3, 10):
    raise RuntimeError("tylang requires Python 3.10 or later")

# Read version from __init__.py without importing the package
here = os.path.abspath(os.path.dirname(__file__))
version_file = os.path.join(here, "tylang", "__init__.py")
with open(version_file, encoding="utf-8") as f:
    match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
version = match.group(1) if match else "0.1.0"

# Read README
readme_file = os.path.join(here, "README.md")
with open(readme_file, "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="tylang",
    version=version,
    description="A tiny expression language with an LLVM JIT read-eval loop",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "llvmlite>=0.50.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "isort>=5.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tylang=tylang.driver:main",
        ],
    },
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Interpreters",
    ],
    keywords=["programming-language", "compiler", "llvm", "jit", "repl"],
    zip_safe=False,
)
