#!/usr/bin/env python3
"""
Hilbert Cycles Setup Configuration
Adaptive cycle indicators (HT_DCPHASE, MAMA / FAMA) on numba kernels
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
README_PATH = Path(__file__).parent / "README.md"
if README_PATH.exists():
    with open(README_PATH, "r", encoding="utf-8") as f:
        long_description = f.read()
else:
    long_description = "Hilbert Transform dominant cycle phase and MESA adaptive moving average"

# Read requirements
REQUIREMENTS_PATH = Path(__file__).parent / "requirements-production.txt"
if REQUIREMENTS_PATH.exists():
    with open(REQUIREMENTS_PATH, "r") as f:
        requirements = [
            line.strip()
            for line in f.readlines()
            if line.strip() and not line.startswith("#")
        ]
else:
    # Fallback requirements
    requirements = [
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "numba>=0.57.0",
        "pyyaml>=6.0",
    ]

# Single source of truth for the version
version_ns = {}
with open(Path(__file__).parent / "hilbert_cycles" / "version.py", "r") as f:
    exec(f.read(), version_ns)

setup(
    name="hilbert-cycles",
    version=version_ns["__version__"],
    author="Hilbert Cycles Team",
    description="Hilbert Transform dominant cycle phase and MESA adaptive moving average",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(include=["hilbert_cycles", "hilbert_cycles.*"]),

    # Dependencies
    install_requires=requirements,

    # Optional dependencies
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.0.0",
            "ruff>=0.0.280",
            "mypy>=1.5.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "TA-Lib>=0.4.25",
        ],
    },

    # Classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Topic :: Office/Business :: Financial :: Investment",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],

    # Python version requirement
    python_requires=">=3.9",

    # Zip safety
    zip_safe=False,

    # Keywords for discovery
    keywords="technical-analysis, hilbert-transform, dominant-cycle, mama, numba",
)
