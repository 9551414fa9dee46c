from setuptools import setup, find_packages

setup(
    name="console-messenger",
    version="0.1.0",
    description="Console messenger backed by a relational store",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "sqlalchemy[asyncio]>=2.0.42",
        "aiosqlite>=0.21.0",
        "environs>=14.2.0",
        "pydantic>=2.11.7",
        "dishka>=1.6.0"
    ],
    extras_require={
        "postgres": [
            "asyncpg>=0.30.0"
        ],
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23"
        ]
    },
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "messenger=messenger.main:run"
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
