"""
pkgfs - Setup Configuration

A namespaced virtual filesystem contract with interchangeable backends and a
conformance harness that verifies any backend against it.

License: MIT
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Core dependencies
core_deps = [
    "pydantic>=2.11.9",
    # Conformance report rendering
    "rich>=14.1.0",
]

# Conformance harness integration with pytest
conformance_deps = [
    "pytest>=8.4.1",
]

# Development dependencies
dev_deps = [
    # Testing
    "pytest>=8.4.1",
    "pytest-cov>=6.2.1",
    # Code quality
    "black>=25.0.0",
    "flake8>=7.1.0",
    "mypy>=1.13.0",
]

setup(
    name="pkgfs",
    version="0.1.0",

    # Package description
    description="Namespaced virtual filesystem contract with a backend conformance harness",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={
        "pkgfs.conformance": ["testdata/app/*", "testdata/app/*/*", "testdata/app/*/*/*"],
    },

    # Python version requirement
    python_requires=">=3.9",

    # Dependencies
    install_requires=core_deps,

    # Optional dependencies (extras)
    extras_require={
        "conformance": conformance_deps,
        "test": conformance_deps + ["pytest-cov>=6.2.1"],
        "dev": core_deps + conformance_deps + dev_deps,
    },

    # PyPI classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Testing",
        "Topic :: System :: Filesystems",
    ],

    keywords=["filesystem", "virtual-filesystem", "namespace", "conformance", "testing"],

    license="MIT",

    include_package_data=True,
    zip_safe=False,
)
