import argparse
import json
import logging
import sys

import secret_scan
from connection_manager import ConnectionManager, RpcUnavailableError
from deploy_config import ConfigError, DeploymentConfigProvider, NotFoundError, load_default
from keys_and_addresses import EnvKeyProvider

logger = logging.getLogger(__name__)

green_color = '\033[92m'
red_color = '\033[91m'
menu_color = '\033[95m'
reset_color = '\033[0m'

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_RPC_UNAVAILABLE = 3


def setup_logging(level='WARNING', log_file=None):
    """Set up logging for the command line run"""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def build_provider(args):
    if args.config:
        return DeploymentConfigProvider.from_file(args.config, key_provider=EnvKeyProvider())
    return load_default()


def print_network(network):
    print(f"\n{menu_color}{network.name}{reset_color}")
    print(f"🌐 RPC: {secret_scan.redact_url(network.rpc_url)}")
    for backup_url in network.backup_rpc_urls:
        print(f"   backup: {secret_scan.redact_url(backup_url)}")
    if network.chain_id is not None:
        print(f"🔗 Chain ID: {network.chain_id}")
    for address in network.addresses:
        print(f"📍 Account: {address}")


def cmd_show(args):
    configuration = build_provider(args).load()
    if args.network:
        networks = [configuration.get_network(args.network)]
    else:
        networks = list(configuration.networks.values())

    if args.json:
        payload = configuration.to_dict(include_credentials=False)
        payload['networks'] = {
            network.name: payload['networks'][network.name] for network in networks
        }
        print(json.dumps(payload, indent=2))
        return EXIT_OK

    print(f"🛠  Compiler: {configuration.compiler.version}"
          + (f" (optimizer, {configuration.compiler.optimizer_runs} runs)"
             if configuration.compiler.optimizer_enabled else ''))
    for network in networks:
        print_network(network)
    return EXIT_OK


def cmd_check(args):
    configuration = build_provider(args).load()
    if args.connect:
        names = [args.network] if args.network else configuration.network_names
        for name in names:
            web3 = ConnectionManager(configuration.get_network(name)).create_web3()
            print(f"✅ {name}: block {web3.eth.block_number}")
    print(f"{green_color}✅ Configuration valid: {', '.join(configuration.network_names) or 'no networks'}{reset_color}")
    return EXIT_OK


def cmd_scan(args):
    return secret_scan.main(args.paths)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='deploy-config',
        description='Inspect and validate contract deployment configuration',
    )
    parser.add_argument('--config', help='JSON definition to use instead of network_config.py')
    parser.add_argument('--log-level', default='WARNING')
    parser.add_argument('--log-file')
    sub = parser.add_subparsers(dest='command', required=True)

    show = sub.add_parser('show', help='print compiler version and networks (never keys)')
    show.add_argument('--network')
    show.add_argument('--json', action='store_true')
    show.set_defaults(func=cmd_show)

    check = sub.add_parser('check', help='validate the configuration')
    check.add_argument('--connect', action='store_true', help='also open each RPC endpoint')
    check.add_argument('--network')
    check.set_defaults(func=cmd_check)

    scan = sub.add_parser('scan', help='look for hardcoded secrets')
    scan.add_argument('paths', nargs='*', default=['.'])
    scan.set_defaults(func=cmd_scan)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    try:
        return args.func(args)
    except ConfigError as e:
        print(f"{red_color}❌ Invalid configuration: {e}{reset_color}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except NotFoundError as e:
        print(f"{red_color}❌ {e}{reset_color}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except RpcUnavailableError as e:
        print(f"{red_color}❌ {e}{reset_color}", file=sys.stderr)
        return EXIT_RPC_UNAVAILABLE


if __name__ == "__main__":
    sys.exit(main())
