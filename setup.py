#!/usr/bin/env python3
"""
Setup script for the ping telemetry Python package.
Makes the system pip-installable.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="ping-telemetry",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="In-process telemetry event batching and ping orchestration",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/your-org/ping-telemetry",
    packages=find_packages(where="scripts", exclude=["tests", "tests.*"]),
    package_dir={"": "scripts"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: System :: Monitoring",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
        ],
    },
    include_package_data=True,
    package_data={
        "": [
            "config/*.json",
            "*.md",
            "*.txt",
        ],
    },
    project_urls={
        "Bug Reports": "https://github.com/your-org/ping-telemetry/issues",
        "Source": "https://github.com/your-org/ping-telemetry",
        "Documentation": "https://github.com/your-org/ping-telemetry#readme",
    },
)
