"""
Setup script for StillFace

Install:
    pip install -e .

With a server backend and the test tools:
    pip install -e ".[mysql,dev]"
"""

from setuptools import setup, find_packages

setup(
    name="stillface",
    version="1.0.0",
    description="Data access layer and in-memory model for still-face paradigm video coding",
    author="StillFace Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "sqlalchemy>=2.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "click>=8.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "mysql": ["mysql-connector-python>=8.0.0"],
        "postgres": ["psycopg2-binary>=2.9.0"],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "stillface=stillface.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
        "Topic :: Scientific/Engineering",
    ],
)
