#!/usr/bin/env python

from setuptools import find_packages, setup

setup(
    name="assetvault",
    version="0.1.0",
    description="Folder and asset storage with access groups, backed by elasticsearch",
    packages=find_packages(include=["assetvault", "assetvault.*"]),
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.11",
    keywords=["API", "assets", "storage"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Archiving",
    ],
    install_requires=[
        "fastapi",
        "elasticsearch~=8.6",
        "python-multipart",
        "python-dotenv",
        "anyio",
        "authlib",
        "bcrypt",
        "pydantic>=2",
        "pydantic-settings",
        "typing-extensions",
        "uvicorn",
    ],
    extras_require={
        "dev": [
            "pytest",
            "httpx",
            "mypy",
            "flake8",
        ]
    },
    entry_points={"console_scripts": ["assetvault = assetvault.__main__:main"]},
)
