"""
Setup configuration for Status Slayer.

Configurable status command for Sway using the swaybar protocol.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read long description from README if it exists
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="stslayer",
    version="0.1.0",
    description="Configurable status command for Sway using the swaybar protocol",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["stslayer", "stslayer.*"]),
    install_requires=[
        "pydantic>=2.0",
        "pyxdg>=0.28",
    ],
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "stslayer=stslayer.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Desktop Environment",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
)
