"""Token Deployer.

Deploys an ERC20 token contract to a test network and mints tokens, picking
EIP-1559 fee parameters from live gas station fee tiers.
"""

__version__ = "0.1.0"
