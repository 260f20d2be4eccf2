"""
Deployment configuration for contract builds and testnet deploys.

Holds the compiler version to build with and, for each named network, the
RPC endpoint and the signing keys to deploy with. A definition is validated
once by ``DeploymentConfigProvider.load()`` and turned into an immutable
``Configuration`` that is handed to consumers explicitly.

Signing keys never live in the definition checked into the repository;
they are resolved at load time through a key provider (see
``keys_and_addresses.EnvKeyProvider``).
"""
import json
import logging
import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

from eth_account import Account

import network_config
from keys_and_addresses import EnvKeyProvider, derive_addresses
from secret_scan import redact_url

logger = logging.getLogger(__name__)

KeyProvider = Callable[[str], Optional[Sequence[str]]]

VERSION_PATTERN = re.compile(r'\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.+-]+)?')
PRIVATE_KEY_PATTERN = re.compile(r'(?:0x)?[0-9a-fA-F]{64}')
PLACEHOLDER_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')
URL_SCHEMES = ('http', 'https', 'ws', 'wss')
DEFAULT_OPTIMIZER_RUNS = 200


class DeployConfigError(Exception):
    """Base class for deployment configuration failures"""


class ConfigError(DeployConfigError):
    """Structurally invalid or incomplete configuration"""

    def __init__(self, message, field=None):
        self.message = message
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


class NotFoundError(DeployConfigError, KeyError):
    """Requested network is not part of the configuration"""

    def __init__(self, name, available=()):
        self.name = name
        self.available = tuple(available)
        super().__init__(name)

    def __str__(self):
        known = ', '.join(self.available) or 'none'
        return f"unknown network '{self.name}' (available: {known})"


@dataclass(frozen=True)
class CompilerConfig:
    version: str
    optimizer_enabled: bool = False
    optimizer_runs: int = DEFAULT_OPTIMIZER_RUNS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'optimizer': {
                'enabled': self.optimizer_enabled,
                'runs': self.optimizer_runs,
            },
        }


@dataclass(frozen=True)
class NetworkDescriptor:
    name: str
    rpc_url: str
    credentials: Tuple[str, ...] = field(repr=False)
    chain_id: Optional[int] = None
    backup_rpc_urls: Tuple[str, ...] = ()

    @property
    def addresses(self) -> List[str]:
        """Checksum addresses of the signing keys, in credential order"""
        return derive_addresses(self.credentials)

    @property
    def rpc_urls(self) -> List[str]:
        return [self.rpc_url, *self.backup_rpc_urls]

    def to_dict(self, include_credentials=True) -> Dict[str, Any]:
        if include_credentials:
            data = {'url': self.rpc_url, 'accounts': list(self.credentials)}
        else:
            data = {'url': redact_url(self.rpc_url), 'addresses': self.addresses}
        if self.chain_id is not None:
            data['chain_id'] = self.chain_id
        if self.backup_rpc_urls:
            data['backup_rpc_urls'] = list(self.backup_rpc_urls)
        return data


@dataclass(frozen=True)
class Configuration:
    compiler: CompilerConfig
    networks: Mapping[str, NetworkDescriptor]

    def __post_init__(self):
        if not isinstance(self.networks, MappingProxyType):
            object.__setattr__(self, 'networks', MappingProxyType(dict(self.networks)))

    def __eq__(self, other):
        if not isinstance(other, Configuration):
            return NotImplemented
        return self.compiler == other.compiler and dict(self.networks) == dict(other.networks)

    def __hash__(self):
        return hash((self.compiler, tuple(sorted(self.networks.items()))))

    @property
    def network_names(self) -> List[str]:
        return list(self.networks)

    def get_network(self, name: str) -> NetworkDescriptor:
        try:
            return self.networks[name]
        except KeyError:
            raise NotFoundError(name, self.networks) from None

    def to_dict(self, include_credentials=True) -> Dict[str, Any]:
        """Serialize back to the definition schema"""
        return {
            'compiler': self.compiler.to_dict(),
            'networks': {
                name: network.to_dict(include_credentials)
                for name, network in self.networks.items()
            },
        }



def _reject_duplicate_keys(pairs):
    """json object hook: a repeated key would silently replace the earlier entry"""
    data = {}
    for key, value in pairs:
        if key in data:
            raise ConfigError(f"duplicate key '{key}'")
        data[key] = value
    return data

class DeploymentConfigProvider:
    def __init__(self, definition: Mapping[str, Any], key_provider: Optional[KeyProvider] = None,
                 environ: Optional[Mapping[str, str]] = None):
        self.definition = definition
        self.key_provider = key_provider
        self.environ = os.environ if environ is None else environ
        self._configuration: Optional[Configuration] = None

    @classmethod
    def from_file(cls, path, key_provider: Optional[KeyProvider] = None,
                  environ: Optional[Mapping[str, str]] = None) -> 'DeploymentConfigProvider':
        """Build a provider from a JSON definition file"""
        try:
            with open(path, 'r', encoding='utf-8') as file:
                definition = json.load(file, object_pairs_hook=_reject_duplicate_keys)
        except OSError as e:
            raise ConfigError(f"cannot read configuration file: {e.strerror}", str(path)) from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid JSON at line {e.lineno} column {e.colno}", str(path)) from e
        except ConfigError as e:
            raise ConfigError(e.message, str(path)) from None
        return cls(definition, key_provider=key_provider, environ=environ)

    @property
    def configuration(self) -> Configuration:
        if self._configuration is None:
            self._configuration = self.load()
        return self._configuration

    def get_network(self, name: str) -> NetworkDescriptor:
        return self.configuration.get_network(name)

    def load(self) -> Configuration:
        """Validate the definition and build an immutable Configuration"""
        if not isinstance(self.definition, Mapping):
            raise ConfigError("configuration must be a mapping")

        compiler = self._parse_compiler(self.definition.get('compiler'))

        raw_networks = self.definition.get('networks')
        if raw_networks is None:
            raw_networks = {}
        if not isinstance(raw_networks, Mapping):
            raise ConfigError("must be a mapping of network name to descriptor", 'networks')

        networks = {}
        for name, entry in raw_networks.items():
            if not isinstance(name, str) or not name.strip():
                raise ConfigError("network names must be non-empty strings", 'networks')
            networks[name] = self._parse_network(name, entry)

        configuration = Configuration(compiler=compiler, networks=networks)
        logger.info(
            "Loaded deployment configuration: compiler %s, networks [%s]",
            compiler.version, ', '.join(networks),
        )
        return configuration

    def _parse_compiler(self, raw) -> CompilerConfig:
        if raw is None:
            raise ConfigError("missing compiler version", 'compiler.version')
        if isinstance(raw, str):
            raw = {'version': raw}
        if not isinstance(raw, Mapping):
            raise ConfigError("must be a version string or a mapping", 'compiler')

        version = raw.get('version')
        if not isinstance(version, str) or not version.strip():
            raise ConfigError("missing compiler version", 'compiler.version')
        if not VERSION_PATTERN.fullmatch(version):
            raise ConfigError(f"'{version}' is not a MAJOR.MINOR.PATCH version", 'compiler.version')

        optimizer = raw.get('optimizer') or {}
        if not isinstance(optimizer, Mapping):
            raise ConfigError("must be a mapping", 'compiler.optimizer')
        enabled = optimizer.get('enabled', False)
        runs = optimizer.get('runs', DEFAULT_OPTIMIZER_RUNS)
        if not isinstance(enabled, bool):
            raise ConfigError("must be true or false", 'compiler.optimizer.enabled')
        if isinstance(runs, bool) or not isinstance(runs, int) or runs < 1:
            raise ConfigError("must be a positive integer", 'compiler.optimizer.runs')

        return CompilerConfig(version=version, optimizer_enabled=enabled, optimizer_runs=runs)

    def _parse_network(self, name: str, entry) -> NetworkDescriptor:
        prefix = f"networks.{name}"
        if not isinstance(entry, Mapping):
            raise ConfigError("network descriptor must be a mapping", prefix)

        url = entry.get('url')
        if url is None:
            raise ConfigError("missing required field", f"{prefix}.url")
        url = self._validate_url(url, f"{prefix}.url")

        backups = entry.get('backup_rpc_urls') or []
        if isinstance(backups, str) or not isinstance(backups, Sequence):
            raise ConfigError("must be a list of URLs", f"{prefix}.backup_rpc_urls")
        backups = tuple(
            self._validate_url(backup, f"{prefix}.backup_rpc_urls[{index}]")
            for index, backup in enumerate(backups)
        )

        chain_id = entry.get('chain_id')
        if chain_id is not None and (isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 1):
            raise ConfigError("must be a positive integer", f"{prefix}.chain_id")

        if 'accounts' in entry:
            accounts = entry['accounts']
        elif self.key_provider is not None:
            logger.debug("Resolving signing keys for %s through key provider", name)
            accounts = self.key_provider(name)
        else:
            accounts = None
        credentials = self._validate_credentials(accounts, f"{prefix}.accounts")

        return NetworkDescriptor(
            name=name,
            rpc_url=url,
            credentials=credentials,
            chain_id=chain_id,
            backup_rpc_urls=backups,
        )

    def _validate_url(self, url, path: str) -> str:
        if not isinstance(url, str) or not url.strip():
            raise ConfigError("must be a non-empty URL string", path)
        url = self._expand_placeholders(url, path)
        parsed = urlparse(url)
        if parsed.scheme not in URL_SCHEMES or not parsed.hostname:
            raise ConfigError("is not a well-formed RPC URL", path)
        return url

    def _expand_placeholders(self, value: str, path: str) -> str:
        def replace(match):
            variable = match.group(1)
            resolved = self.environ.get(variable)
            if not resolved:
                raise ConfigError(f"environment variable {variable} is not set", path)
            return resolved
        return PLACEHOLDER_PATTERN.sub(replace, value)

    @staticmethod
    def _validate_credentials(accounts, path: str) -> Tuple[str, ...]:
        if not accounts:
            raise ConfigError("no signing keys supplied", path)
        if isinstance(accounts, str) or not isinstance(accounts, Sequence):
            raise ConfigError("must be a list of private keys", path)

        credentials = []
        for index, key in enumerate(accounts):
            key_path = f"{path}[{index}]"
            if not isinstance(key, str) or not PRIVATE_KEY_PATTERN.fullmatch(key):
                raise ConfigError("private key must be 64 hex characters", key_path)
            if int(key, 16) == 0:
                raise ConfigError("not a valid secp256k1 private key", key_path)
            try:
                Account.from_key(key)
            except Exception:
                # the key itself must not end up in the traceback
                raise ConfigError("not a valid secp256k1 private key", key_path) from None
            credentials.append(key)
        return tuple(credentials)


def load_default(key_provider: Optional[KeyProvider] = None,
                 environ: Optional[Mapping[str, str]] = None) -> DeploymentConfigProvider:
    """Provider for the project's own network_config definition"""
    environ = os.environ if environ is None else environ
    if key_provider is None:
        key_provider = EnvKeyProvider(network_config.account_env_vars, environ=environ)
    definition = {'compiler': network_config.compiler, 'networks': network_config.networks}
    return DeploymentConfigProvider(definition, key_provider=key_provider, environ=environ)
