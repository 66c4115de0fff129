import os
from setuptools import setup, find_packages

setup(
    name="chall-kompose",
    version="0.1.0",
    description="Pulumi component deploying docker compose manifests on isolated Kubernetes namespaces",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="CTFer.io",
    author_email="ctfer-io@protonmail.com",
    url="https://github.com/ctfer-io/chall-manager",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "pulumi>=3.0.0",
        "pulumi-kubernetes>=4.12.0",
        "PyYAML>=6.0",
        "kubernetes>=28.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=22.0.0",
            "mypy>=1.0.0",
        ],
    },
)
