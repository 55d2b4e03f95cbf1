# setup.py
from setuptools import setup, find_packages

setup(
    name="uk_bills_dashboard",
    version="0.1.0",
    description="UK parliamentary bills dashboard backend and knowledge-graph tools",
    packages=find_packages(
        exclude=(
            "tests",
            "tests.*",
            "docs",
            "dist",
            "build",
        )
    ),
    py_modules=["app", "api_models"],
    install_requires=[
        "numpy",
        "pandas",
        "networkx",
        "matplotlib",
        "requests",
        "fastapi",
        "pydantic",
        "uvicorn",
        "python-multipart",
    ],
    extras_require={
        "postgres": ["psycopg2-binary"],
        "test": ["pytest", "httpx"],
    },
    python_requires=">=3.10",
)
