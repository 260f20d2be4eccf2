# keys_and_addresses.py
#
# Signing keys are never written in this repository. They are supplied at
# load time by a key provider: a callable taking the network name and
# returning that network's private keys (or None when it has none).
import logging
import os
import re
from typing import Dict, List, Mapping, Optional, Sequence

from eth_account import Account

logger = logging.getLogger(__name__)


def env_var_names(network_name: str) -> List[str]:
    """Conventional variable names for a network: <NAME>_PRIVATE_KEYS, <NAME>_PRIVATE_KEY"""
    stem = re.sub(r'[^0-9A-Za-z]', '_', network_name).upper()
    return [f"{stem}_PRIVATE_KEYS", f"{stem}_PRIVATE_KEY"]


def split_keys(value: str) -> List[str]:
    return [key.strip() for key in value.split(',') if key.strip()]


class EnvKeyProvider:
    """Reads comma-separated private keys from environment variables"""

    def __init__(self, env_names: Optional[Mapping[str, str]] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.env_names = dict(env_names or {})
        self.environ = os.environ if environ is None else environ

    def candidates(self, network_name: str) -> List[str]:
        names = []
        if network_name in self.env_names:
            names.append(self.env_names[network_name])
        names.extend(env_var_names(network_name))
        return names

    def __call__(self, network_name: str) -> Optional[List[str]]:
        for variable in self.candidates(network_name):
            value = self.environ.get(variable)
            if value is None:
                continue
            keys = split_keys(value)
            if keys:
                logger.debug("Using %d key(s) from %s for %s", len(keys), variable, network_name)
                return keys
        logger.debug("No signing keys in environment for %s (tried %s)",
                     network_name, ', '.join(self.candidates(network_name)))
        return None


class StaticKeyProvider:
    """Serves keys already held in memory, e.g. fetched from a secret store"""

    def __init__(self, keys: Mapping[str, Sequence[str]]):
        self.keys: Dict[str, List[str]] = {name: list(values) for name, values in keys.items()}

    def __call__(self, network_name: str) -> Optional[List[str]]:
        keys = self.keys.get(network_name)
        return list(keys) if keys else None


def derive_addresses(private_keys: Sequence[str]) -> List[str]:
    """Checksum address for each private key, in the same order"""
    return [Account.from_key(key).address for key in private_keys]
