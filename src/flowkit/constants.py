"""Configuration constants for the flowkit library."""

DEFAULT_CONFIG_FILE = "flow.json"

DEFAULT_EMULATOR_NAME = "default"
DEFAULT_EMULATOR_PORT = 3569
DEFAULT_EMULATOR_SERVICE_ACCOUNT = "emulator-account"

# Default networks and their access node hosts
NETWORK_CONFIG = {
    "emulator": {
        "host": "127.0.0.1:3569",
        "chain_id": "flow-emulator",
    },
    "testnet": {
        "host": "access.devnet.nodes.onflow.org:9000",
        "chain_id": "flow-testnet",
    },
    "mainnet": {
        "host": "access.mainnet.nodes.onflow.org:9000",
        "chain_id": "flow-mainnet",
    },
}

# Known gRPC access hosts and their REST API counterparts
REST_ENDPOINTS = {
    "127.0.0.1:3569": "http://127.0.0.1:8888",
    "localhost:3569": "http://localhost:8888",
    "access.devnet.nodes.onflow.org:9000": "https://rest-testnet.onflow.org",
    "access.testnet.nodes.onflow.org:9000": "https://rest-testnet.onflow.org",
    "access.mainnet.nodes.onflow.org:9000": "https://rest-mainnet.onflow.org",
}

# Host value selecting the in-process emulator gateway
MEMORY_HOST = "memory"

MAX_GAS_LIMIT = 9999
DEFAULT_GAS_LIMIT = 1000

ACCOUNT_KEY_WEIGHT_THRESHOLD = 1000

MIN_SEED_LENGTH = 32

SEAL_POLL_INTERVAL = 1.0

EVENTS_BLOCK_CHUNK = 250

ACCOUNT_CREATED_EVENT = "flow.AccountCreated"
ACCOUNT_CONTRACT_ADDED_EVENT = "flow.AccountContractAdded"
ACCOUNT_CONTRACT_UPDATED_EVENT = "flow.AccountContractUpdated"
ACCOUNT_CONTRACT_REMOVED_EVENT = "flow.AccountContractRemoved"

GOOGLE_CREDENTIALS_ENV = "GOOGLE_APPLICATION_CREDENTIALS"

# Staking collection and id table contracts per chain
STAKING_CONTRACTS = {
    "testnet": {
        "FlowIDTableStaking": "0x9eca2b38b18b5dfe",
        "FlowStakingCollection": "0x95e019a17d0e23d7",
        "LockedTokens": "0x95e019a17d0e23d7",
    },
    "mainnet": {
        "FlowIDTableStaking": "0x8624b52f9ddcd04a",
        "FlowStakingCollection": "0x8d0e87b65159ae63",
        "LockedTokens": "0x8d0e87b65159ae63",
    },
}
