"""
ModelGen - Eloquent Model Generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="modelgen",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="Generate Laravel models, factories, observers, resources and policies from a database schema",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["modelgen", "modelgen.*"]),
    package_data={"modelgen": ["resources/*.stub"]},
    include_package_data=True,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "sqlalchemy>=2.0.0",
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "mysql": [
            "pymysql>=1.0",
        ],
        "pgsql": [
            "psycopg2-binary>=2.9",
        ],
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "modelgen=modelgen.cli:cli_main",
        ],
    },
    keywords="laravel, eloquent, generator, models, factories, code-generator, schema",
)
