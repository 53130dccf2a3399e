#!/usr/bin/env python
"""
vfsim - Virtual File System Simulator with block allocation and a command shell
"""
from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Define required packages
required_packages = [
    "pydantic>=2.0.0",  # For data models and settings validation
    "pyyaml>=6.0",      # For configuration file support
    "rich>=13.5.0",     # For rich terminal output
    "cachetools>=5.5.2", # For caching functionality
    "typing-extensions>=4.5.0", # For enhanced type hints
]

setup(
    name="vfsim",
    version="1.0.0",
    description="An in-memory filesystem simulator with users, permissions and block allocation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=required_packages,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'vfsim=vfsim.main:main',
        ],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
