"""scicalc - Scientific calculator core."""
from setuptools import setup, find_packages

setup(
    name="scicalc",
    version="1.0.0",
    description="Scientific calculator with expression evaluation, memory and history",
    author="Morten Elmstroem Hansen",
    packages=find_packages(exclude=["tests*"]),
    install_requires=[
        "click>=8.1.0",
        "rich>=13.0.0",
        "questionary>=2.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "scicalc=scicalc.cli:main",
        ],
    },
    python_requires=">=3.10",
)
