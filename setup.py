from setuptools import setup, find_packages

setup(
    name="provider-balancer",
    version="0.1.0",
    description="Pluggable provider selection strategies (random, weighted, round-robin, least-loaded, consistent hashing)",
    packages=find_packages(include=["providerbalancer", "providerbalancer.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
