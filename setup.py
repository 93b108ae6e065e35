from setuptools import setup, find_packages

setup(
    name="rawrelay",
    version="0.1.0",
    description="Link-layer UDP relay with a hand-written Ethernet/IPv4/UDP decoder",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "click>=8.0.0",
        "scapy>=2.5.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "rawrelay=rawrelay.cli.main:cli",
        ],
    },
    python_requires=">=3.8",
)
