from eth_utils import to_checksum_address

TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ACCOUNT_ADDRESS = to_checksum_address("0x" + "11" * 20)
TEST_OWNER_ADDRESS = to_checksum_address("0x" + "33" * 20)
TEST_CONTRACT_ADDRESS = to_checksum_address("0x" + "22" * 20)
TEST_TX_HASH = "0x" + "ab" * 32
TEST_GAS_STATION_URL = "https://gasstation.test/amoy"

MINT_ABI = {
    "type": "function",
    "name": "mint",
    "stateMutability": "nonpayable",
    "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
    "outputs": [],
}
CONSTRUCTOR_ABI = {
    "type": "constructor",
    "stateMutability": "nonpayable",
    "inputs": [{"name": "initialOwner", "type": "address"}],
}
