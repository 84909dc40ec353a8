from setuptools import setup, find_packages


setup(
    name="brzip",
    version="0.1",
    packages=find_packages(include=["brzip", "brzip.*"]),
    description="A streaming archive container of individually Brotli-compressed entries.",
    python_requires=">=3.8",
    install_requires=[
        "brotli>=1.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "brzip=brzip.cli:main",
        ]
    },
)
