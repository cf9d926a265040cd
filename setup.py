#!/usr/bin/env python3
"""
Setup script for PanelReader
============================
"""

from pathlib import Path
from setuptools import setup, find_packages

HERE = Path(__file__).parent
README = (HERE / "README.md").read_text(encoding='utf-8')


def read_requirements(filename):
    """Read requirements from a file, skipping comments and blank lines."""
    req_file = HERE / filename
    if req_file.exists():
        lines = req_file.read_text().strip().split('\n')
        return [l.strip() for l in lines if l.strip() and not l.startswith('#')]
    return []


setup(
    name="panelreader",
    version="1.0.0",
    description="Comic reader that detects panels and shows them one at a time",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Multimedia :: Graphics :: Viewers",
    ],
    keywords="pdf comics viewer panel detection opencv",

    packages=find_packages(include=["panelreader", "panelreader.*"]),

    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "vision": read_requirements("requirements-vision.txt"),
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
        ],
    },

    entry_points={
        "console_scripts": [
            "panelreader=panelreader.__main__:main",
        ],
    },
)
