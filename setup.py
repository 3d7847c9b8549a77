"""
Setup script for the career-story-wizard project.

Allows development installation with `pip install -e .`
Test dependencies: `pip install -e .[test]`
"""

from setuptools import setup, find_packages

setup(
    name="career-story-wizard",
    version="0.1.0",
    packages=find_packages(include=["src", "src.*"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "langchain-core>=0.3",
        "langchain-openai>=0.2",
        "pydantic>=2.5",
        "tenacity>=8.2",
        "python-dotenv>=1.0",
        "pymongo>=4.6",
        "json-repair>=0.30",
        "fastapi>=0.110",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
)
