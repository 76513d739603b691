#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="unitool",
    version="0.3.0",
    description="Compile Unity projects and run their tests headless from the command line",
    author="Max Qian",
    author_email="lightapt@example.com",
    package_dir={"": "python/tools"},
    packages=find_packages(where="python/tools", include=["unitool", "unitool.*"]),
    python_requires=">=3.11",
    install_requires=[
        "loguru>=0.7.0",
        "pydantic>=2.0",
        "rich>=13.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=23.1.0",
            "mypy>=1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "unitool=unitool.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Build Tools",
        "Topic :: Software Development :: Testing",
    ],
)
