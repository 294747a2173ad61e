"""
Lines of Thought Server - Branching thought graph with quality gating
Setup configuration for pip installation
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="lines-of-thought-server",
    version="1.0.0",
    description="Branching thought graph with duplicate detection, moderation and argument scoring",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.104.1",
        "uvicorn[standard]>=0.24.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "neo4j>=5.14.0",
        "redis>=5.0.1",
        "httpx>=0.25.1",
        "numpy>=1.26.0",
        "PyYAML>=6.0",
        "uvloop>=0.19.0; sys_platform != 'win32'",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
        ]
    },
    entry_points={
        "console_scripts": [
            "lines-of-thought=lines_of_thought.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
    ],
)
