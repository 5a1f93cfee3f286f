"""
Setup script for the matchplay-scoring package.

Installs the matchplay_scoring package from src/ together with the
SQLite schema used for the device-local scoring state.
"""

from setuptools import setup, find_packages

setup(
    name="matchplay-scoring",
    version="1.0.0",
    description="Live match-play golf scoring: offline queue, session lock and standings",
    author="Scoring Team",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "python-dotenv>=1.0.0",
        "pydantic>=2.5.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
        "dev": [
            "pytest>=7.4",
            "build",
            "wheel",
        ],
    },
    package_data={
        "matchplay_scoring._shared": ["schema.sql"],
    },
    entry_points={
        "console_scripts": [
            "matchplay-scoring=matchplay_scoring.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
