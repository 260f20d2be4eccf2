import secret_scan
from secret_scan import SecretExposureRisk, redact_url, scan_paths, scan_text

# Built at runtime so this file does not trip the scanner itself.
LEAKED_KEY = 'ab' * 32
INFURA_KEY = '34d0d09e' * 4

HARDHAT_CONFIG = f'''require("@nomicfoundation/hardhat-toolbox");
const SEPOLIA_PRIVATE_KEY = "{LEAKED_KEY}";

module.exports = {{
  solidity: "0.8.9",
  networks: {{
    sepolia: {{
      url: `https://sepolia.infura.io/v3/{INFURA_KEY}`,
      accounts: [SEPOLIA_PRIVATE_KEY]
    }}
  }}
}};
'''


def test_hardhat_config_findings():
    findings = list(scan_text(HARDHAT_CONFIG, 'hardhat.config.js'))

    assert [(f.line, f.kind) for f in findings] == [(2, 'private_key'), (8, 'rpc_api_key')]
    for finding in findings:
        assert LEAKED_KEY not in finding.excerpt
        assert INFURA_KEY not in finding.excerpt


def test_prefixed_key_and_env_assignment():
    text = f"key = '0x{LEAKED_KEY}'\nDEVNET_PRIVKEY={LEAKED_KEY}\n"
    findings = list(scan_text(text, '.env'))
    assert [f.line for f in findings] == [1, 2]
    assert {f.kind for f in findings} == {'private_key'}


def test_placeholders_and_public_urls_are_clean():
    text = (
        "'url': 'https://sepolia.infura.io/v3/${INFURA_API_KEY}',\n"
        "'url': 'https://goerli-rollup.arbitrum.io/rpc',\n"
        "'contract': '0x8D86c3573928CE125f9b2df59918c383aa2B514D',\n"
    )
    assert list(scan_text(text)) == []


def test_longer_hex_is_not_a_key():
    assert list(scan_text(f"data = '0x{LEAKED_KEY}00'")) == []


def test_ignore_marker():
    text = f"KEY = '{LEAKED_KEY}'  # secret-scan: ignore"
    assert list(scan_text(text)) == []


def test_redact_url():
    url = f"https://eth-sepolia.g.alchemy.com/v2/{INFURA_KEY}"
    redacted = redact_url(url)
    assert INFURA_KEY not in redacted
    assert redacted.startswith('https://eth-sepolia.g.alchemy.com/v2/34d0...')
    assert redact_url('https://goerli-rollup.arbitrum.io/rpc') == 'https://goerli-rollup.arbitrum.io/rpc'


def test_finding_str():
    finding = SecretExposureRisk(path='a.py', line=3, kind='private_key', excerpt='x')
    assert str(finding) == 'a.py:3: private_key: x'


def test_scan_paths_walks_directories(tmp_path):
    (tmp_path / 'node_modules').mkdir()
    (tmp_path / 'node_modules' / 'dep.js').write_text(f'"{LEAKED_KEY}"', encoding='utf-8')
    (tmp_path / 'hardhat.config.js').write_text(HARDHAT_CONFIG, encoding='utf-8')
    (tmp_path / 'notes.md').write_text(f'"{LEAKED_KEY}"', encoding='utf-8')
    (tmp_path / 'clean.py').write_text("x = 1\n", encoding='utf-8')

    findings = scan_paths([str(tmp_path)])

    assert {f.path for f in findings} == {str(tmp_path / 'hardhat.config.js')}


def test_scan_skips_binary_files(tmp_path):
    path = tmp_path / 'blob.json'
    path.write_bytes(b'\xff\xfe\x00\x81')
    assert scan_paths([str(path)]) == []


def test_scan_skips_missing_files(tmp_path, caplog):
    missing = tmp_path / 'deleted.js'
    dirty = tmp_path / 'dirty.py'
    dirty.write_text(f"KEY = '{LEAKED_KEY}'\n", encoding='utf-8')

    findings = scan_paths([str(missing), str(dirty)])

    assert [f.path for f in findings] == [str(dirty)]
    assert 'Skipping unreadable file' in caplog.text


def test_main_missing_path_is_clean(tmp_path):
    assert secret_scan.main([str(tmp_path / 'nope.js')]) == 0


def test_main_exit_codes(tmp_path, capsys):
    clean = tmp_path / 'clean.py'
    clean.write_text("x = 1\n", encoding='utf-8')
    assert secret_scan.main([str(clean)]) == 0

    dirty = tmp_path / 'dirty.py'
    dirty.write_text(f"KEY = '{LEAKED_KEY}'\n", encoding='utf-8')
    assert secret_scan.main([str(dirty)]) == 1
    assert 'dirty.py:1: private_key' in capsys.readouterr().out
