"""
TaskList setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="tasklist",
    version="1.0.0",
    description="TaskList — single-page task list on a hosted database, storage and auth backend",
    packages=find_packages(include=["tasklist", "tasklist.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "tasklist=tasklist.cli:main",
        ],
    },
    install_requires=[
        "reflex>=0.8.0",
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
