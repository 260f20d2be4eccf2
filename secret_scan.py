"""
Static scan for credentials committed to source files.

Each hit is reported as a ``SecretExposureRisk``: a hex private key written
as a string literal, or an RPC URL carrying a literal provider API key
(Infura, Alchemy and the like). ``${VAR}`` placeholders are not hits. A line
containing ``secret-scan: ignore`` is skipped.

Usable as a pre-commit hook: ``python secret_scan.py <files>`` exits 1 when
anything is found.
"""
import logging
import os
import re
import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, List

logger = logging.getLogger(__name__)

IGNORE_MARKER = 'secret-scan: ignore'
SCANNED_SUFFIXES = ('.py', '.js', '.ts', '.json', '.toml', '.env', '.yaml', '.yml', '.cfg', '.ini')
SKIPPED_DIRS = {'.git', 'node_modules', '__pycache__', '.venv', 'venv', 'build', 'dist'}

PRIVATE_KEY_LITERAL = re.compile(r'''(?P<quote>["'`])(?P<secret>(?:0x)?[0-9a-fA-F]{64})(?P=quote)''')
# .env style assignments carry no quotes
PRIVATE_KEY_ASSIGNMENT = re.compile(r'^\s*[A-Za-z_][A-Za-z0-9_]*\s*=\s*(?P<secret>(?:0x)?[0-9a-fA-F]{64})\s*$')
RPC_API_KEY = re.compile(
    r'https?://[^\s"\'`/]*(?:infura\.io|alchemy\.com|alchemyapi\.io|quiknode\.pro|ankr\.com)'
    r'[^\s"\'`]*?/(?:v\d+/)?(?P<secret>[0-9A-Za-z_-]{20,})'
)


@dataclass(frozen=True)
class SecretExposureRisk:
    path: str
    line: int
    kind: str
    excerpt: str

    def __str__(self):
        return f"{self.path}:{self.line}: {self.kind}: {self.excerpt}"


def redact(secret: str) -> str:
    if len(secret) <= 8:
        return '*' * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def redact_url(url: str) -> str:
    """Hide a provider API key embedded in an RPC URL"""
    match = RPC_API_KEY.search(url)
    if not match:
        return url
    return url[:match.start('secret')] + redact(match.group('secret')) + url[match.end('secret'):]


def scan_text(text: str, path: str = '<string>') -> Iterator[SecretExposureRisk]:
    for number, line in enumerate(text.splitlines(), start=1):
        if IGNORE_MARKER in line:
            continue
        for pattern, kind in ((PRIVATE_KEY_LITERAL, 'private_key'),
                              (PRIVATE_KEY_ASSIGNMENT, 'private_key'),
                              (RPC_API_KEY, 'rpc_api_key')):
            for match in pattern.finditer(line):
                secret = match.group('secret')
                excerpt = line.strip().replace(secret, redact(secret))
                yield SecretExposureRisk(path=path, line=number, kind=kind, excerpt=excerpt)


def iter_files(paths: Iterable[str]) -> Iterator[str]:
    for path in paths:
        if os.path.isdir(path):
            for root, dirs, files in os.walk(path):
                dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRS)
                for name in sorted(files):
                    if name.endswith(SCANNED_SUFFIXES) or name.startswith('.env'):
                        yield os.path.join(root, name)
        else:
            yield path


def scan_paths(paths: Iterable[str]) -> List[SecretExposureRisk]:
    findings = []
    for path in iter_files(paths):
        try:
            with open(path, 'r', encoding='utf-8') as file:
                text = file.read()
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", path)
            continue
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e.strerror)
            continue
        findings.extend(scan_text(text, path))
    for finding in findings:
        logger.warning("Possible secret exposure: %s", finding)
    return findings


def main(argv=None) -> int:
    paths = sys.argv[1:] if argv is None else argv
    findings = scan_paths(paths or ['.'])
    for finding in findings:
        print(f"❌ {finding}")
    return 1 if findings else 0


if __name__ == '__main__':
    sys.exit(main())
