from setuptools import setup, find_packages

setup(
    name="fnr",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "fnr=fnr.cli:main",
        ],
    },
    description="Recursively find and replace. Like sed, but memorable.",
)
