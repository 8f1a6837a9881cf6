# setup.py
from setuptools import setup, find_packages

setup(
    name="bucket-routing",
    version="0.1.0",
    description="Bucket-aware split grouping and routing for join vertices",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "setproctitle",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
