# network_config.py
#
# Static deployment targets. Nothing secret belongs in this file: API keys are
# written as ${VAR} placeholders and signing keys are read from the
# environment variables listed in account_env_vars.

compiler = {
    'version': '0.8.9',
    'optimizer': {
        'enabled': False,
        'runs': 200
    }
}

networks = {
    'sepolia': {
        'url': 'https://sepolia.infura.io/v3/${INFURA_API_KEY}',
        'chain_id': 11155111,
        'backup_rpc_urls': [
            'https://ethereum-sepolia.publicnode.com',
            'https://rpc.sepolia.org'
        ]
    },
    'l2': {
        'url': 'https://goerli-rollup.arbitrum.io/rpc',
        'chain_id': 421613
    }
}

# Environment variables holding the comma-separated signing keys per network
account_env_vars = {
    'sepolia': 'SEPOLIA_PRIVATE_KEY',
    'l2': 'DEVNET_PRIVKEY'
}

# RPC request configuration, used by connection_manager
rpc_config = {
    'timeout': 20,
    'retry_count': 2,
    'retry_delay': 1
}
