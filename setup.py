"""
Python package configuration for oasis-cognition-regression.

This setup script configures the package for distribution and installation,
defining metadata, dependencies, and entry points.
"""
from setuptools import setup, find_packages

# Read the long description from README.md
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Parse requirements from requirements.txt, skipping comments and blank lines
with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [
        line.strip() for line in fh.readlines()
        if line.strip() and not line.startswith("#")
    ]

# Configure package metadata and dependencies
setup(
    # Basic package information
    name="oasis-cognition-regression",
    version="0.1.0",
    description="Classical and Bayesian regression of cognitive scores on the OASIS longitudinal MRI data",

    # Detailed description for PyPI page
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Top-level packages and the two script modules
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main", "analysis"],

    # PyPI classifiers for package categorization
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],

    # Python version requirements
    python_requires=">=3.10",

    # Dependencies from requirements.txt
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },

    # Command-line scripts that can be called after installation
    entry_points={
        "console_scripts": [
            "oasis-analysis=main:main",  # Creates the 'oasis-analysis' command
        ],
    },
)
