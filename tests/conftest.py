import copy
import logging

import pytest

# Throwaway keys used only by the test suite.
KEY_A = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"  # secret-scan: ignore
KEY_B = "0x1111111111111111111111111111111111111111111111111111111111111111"  # secret-scan: ignore

SEPOLIA_URL = "https://sepolia.infura.io/v3/XXXX"
L2_URL = "https://goerli-rollup.arbitrum.io/rpc"


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by deploy_cli.setup_logging"""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def definition():
    return copy.deepcopy({
        'compiler': {'version': '0.8.9'},
        'networks': {
            'sepolia': {'url': SEPOLIA_URL, 'accounts': [KEY_A]},
            'l2': {'url': L2_URL, 'accounts': [KEY_B], 'chain_id': 421613},
        },
    })


@pytest.fixture
def keyless_definition():
    return {
        'compiler': '0.8.9',
        'networks': {
            'sepolia': {'url': 'https://sepolia.infura.io/v3/${INFURA_API_KEY}', 'chain_id': 11155111},
            'l2': {'url': L2_URL},
        },
    }
