from setuptools import setup


setup(
    name="tabfold",
    version="0.1.0",
    description="Aggregate-and-pivot and first-normal-form expansion for delimited text records",
    packages=["tabfold"],
    python_requires=">=3.9",
    install_requires=[
        "chardet",
        "openpyxl",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "tabfold=tabfold.cli:main",
        ]
    },
)
