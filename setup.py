"""Setup for ZenTime.

Install for development:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages

setup(
    name="ZenTime",
    version="1.0.0",
    description="Meditation countdown and box-breathing timer engines",
    packages=find_packages(include=["zentime", "zentime.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)
