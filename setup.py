"""Setup script for the tig-gh package."""

from setuptools import find_packages, setup

setup(
    name="tig-gh",
    version="0.1.0",
    description="Terminal dashboard for GitHub issues, pull requests, reviews and commits",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "requests>=2.28",
        "rich>=13.0",
        "textual>=0.47",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tig-gh=tiggh.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console :: Curses",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
