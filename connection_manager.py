import logging

import requests
from eth_account import Account
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from web3 import Web3

import network_config
from deploy_config import ConfigError, DeployConfigError
from secret_scan import redact_url


class RpcUnavailableError(DeployConfigError):
    """None of a network's RPC endpoints answered"""


class ConnectionManager:
    """Hands a NetworkDescriptor to web3: connected client plus local signers"""

    def __init__(self, descriptor, rpc_config=None):
        self.descriptor = descriptor
        self.rpc_config = dict(network_config.rpc_config)
        self.rpc_config.update(rpc_config or {})
        self.logger = logging.getLogger(f'{__name__}.{descriptor.name}')

    def _create_session(self):
        """requests session retrying on dropped connections and gateway errors"""
        retry = Retry(
            total=self.rpc_config['retry_count'],
            backoff_factor=self.rpc_config['retry_delay'],
            status_forcelist=[429, 502, 503, 504],
            allowed_methods=frozenset(['POST']),
        )
        session = requests.Session()
        adapter = HTTPAdapter(max_retries=retry)
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        return session

    def _try_connect(self, rpc_url):
        try:
            web3 = Web3(Web3.HTTPProvider(
                rpc_url,
                request_kwargs={'timeout': self.rpc_config['timeout']},
                session=self._create_session(),
            ))
            if web3.is_connected():
                self.logger.info(f"Connected to {self.descriptor.name} via {redact_url(rpc_url)}")
                return web3
        except requests.exceptions.RequestException as e:
            self.logger.warning(f"Failed to connect to {redact_url(rpc_url)}: {type(e).__name__}")
        return None

    def create_web3(self):
        """Connect through the primary RPC, falling back to the backup URLs in order"""
        for rpc_url in self.descriptor.rpc_urls:
            web3 = self._try_connect(rpc_url)
            if web3 is None:
                continue
            self._check_chain_id(web3)
            return web3

        raise RpcUnavailableError(f"Failed to connect to any RPC for {self.descriptor.name}")

    def _check_chain_id(self, web3):
        expected = self.descriptor.chain_id
        if expected is None:
            return
        reported = web3.eth.chain_id
        if reported != expected:
            raise ConfigError(
                f"endpoint reports chain id {reported}, expected {expected}",
                f"networks.{self.descriptor.name}.chain_id",
            )

    def signers(self):
        """LocalAccount per credential, ready for sign_transaction"""
        return [Account.from_key(key) for key in self.descriptor.credentials]
