"""
LexDesk setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="lexdesk",
    version="0.3.0",
    description="LexDesk — legal practice workspace (documents, folders, AI chat)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "reflex>=0.6.0",
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
