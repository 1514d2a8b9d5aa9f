from setuptools import setup

setup(
    name="hedvig-access",
    version="0.1.0",
    packages=["hedvig", "hedvig.cli", "hedvig.lib"],
    install_requires=[
        "Click",
        "PyYAML",
        "colorama",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "hedvig = hedvig.cli.cli:cli",
        ],
    },
)
