# setup.py
from setuptools import setup, find_packages

setup(
    name="scatterkit",
    version="0.1.0",
    description="Fan-out / fan-in execution for embarrassingly parallel batch processing.",
    package_dir={"": "src"},
    packages=find_packages("src", include=["scatterkit", "scatterkit.*"]),
    python_requires=">=3.9",
    install_requires=[
        "tqdm",
        "setproctitle",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "scatterkit=scatterkit.cli:main",
        ],
    },
)
