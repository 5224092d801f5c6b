from setuptools import find_packages, setup

setup(
    name="token-deployer",
    version="0.1.0",
    description="Deploy an ERC20 token contract and mint tokens with gas station fee tiers.",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.8",
    entry_points={"console_scripts": ["token-deployer=token_deployer.__main__:main"]},
    install_requires=[
        "click>=8.0",
        "eth-account>=0.13",
        "eth-keys",
        "eth-typing",
        "eth-utils>=2.0",
        "flask>=2.0",
        "flask-marshmallow>=0.14",
        "gevent>=22.10",
        "marshmallow>=3.13",
        "prometheus-client",
        "pyyaml",
        "requests",
        "structlog>=21.1",
        "waitress",
        "web3>=7.0",
    ],
    extras_require={"test": ["hexbytes", "pytest", "responses"]},
)
