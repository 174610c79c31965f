# PATH: tests/unit/test_config.py
"""
Unit tests for configuration loading.
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from config import CONFIG_DIR, load_engine, load_yaml
from core.exceptions import ConfigError
from execution.config import load_engine_config

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

MINIMAL = """
tokens:
  WETH: "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
  USDC: "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
base_asset: WETH
initiator: "0x1111111111111111111111111111111111111111"
account: reserve
loan_pools:
  - token_a: WETH
    token_b: USDC
    fee: 3000
    address: "0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8"
    liquidity:
      WETH: "1000"
"""

CLEAN_ENV = {"FLASHARB_INITIATOR": "", "FLASHARB_EVENT_LOG": "", "FLASHARB_RPC_URLS": ""}


class TestConfigLoading(unittest.TestCase):
    """Tests for config loading functions."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, text: str) -> Path:
        path = self.tmp / "engine.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_config_dir_exists(self):
        self.assertTrue(CONFIG_DIR.exists())
        self.assertTrue((CONFIG_DIR / "engine.yaml").exists())

    def test_bundled_engine_yaml(self):
        data = load_engine()
        self.assertIn("tokens", data)
        self.assertEqual(data["base_asset"], "WETH")

    def test_bundled_engine_config(self):
        with patch.dict(os.environ, CLEAN_ENV):
            config = load_engine_config()
        self.assertEqual(config.base_asset, WETH)
        self.assertEqual(config.base_symbol, "WETH")
        self.assertEqual(config.base_decimals, 18)
        self.assertEqual({v.name for v in config.venues}, {"sushiswap", "uniswap_v3"})
        self.assertTrue(all(isinstance(v, int) for p in config.loan_pools for v in p.balances.values()))

    def test_minimal_config(self):
        with patch.dict(os.environ, CLEAN_ENV):
            config = load_engine_config(self._write(MINIMAL))
        self.assertEqual(config.account, "reserve")
        self.assertIsNone(config.event_log)
        self.assertEqual(config.loan_pools[0].balances, {WETH: 1000})
        self.assertEqual(config.deadline_offset_seconds, 120)

    def test_env_overrides(self):
        env = {
            "FLASHARB_INITIATOR": "0xABCD000000000000000000000000000000000000",
            "FLASHARB_EVENT_LOG": str(self.tmp / "steps.jsonl"),
            "FLASHARB_RPC_URLS": "https://a.test, https://b.test",
        }
        with patch.dict(os.environ, env):
            config = load_engine_config(self._write(MINIMAL))
        self.assertEqual(config.initiator, "0xabcd000000000000000000000000000000000000")
        self.assertEqual(config.event_log, self.tmp / "steps.jsonl")
        self.assertEqual(config.rpc.urls, ["https://a.test", "https://b.test"])

    def test_missing_file(self):
        with self.assertRaises(ConfigError):
            load_engine_config(self.tmp / "absent.yaml")

    def test_malformed_yaml(self):
        with self.assertRaises(ConfigError):
            load_yaml(self._write("tokens: [unclosed"))

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigError):
            load_yaml(self._write("- just\n- a list\n"))

    def test_missing_required_key(self):
        with patch.dict(os.environ, CLEAN_ENV):
            with self.assertRaises(ConfigError):
                load_engine_config(self._write(MINIMAL.replace("account: reserve", "")))

    def test_unquoted_address_rejected(self):
        text = MINIMAL.replace(
            'address: "0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8"',
            "address: 0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8",
        )
        with patch.dict(os.environ, CLEAN_ENV):
            with self.assertRaises(ConfigError):
                load_engine_config(self._write(text))

    def test_float_amount_rejected(self):
        with patch.dict(os.environ, CLEAN_ENV):
            with self.assertRaises(ConfigError):
                load_engine_config(self._write(MINIMAL.replace('WETH: "1000"', "WETH: 1.5")))

    def test_unknown_token_symbol(self):
        with patch.dict(os.environ, CLEAN_ENV):
            with self.assertRaises(ConfigError):
                load_engine_config(self._write(MINIMAL.replace("token_b: USDC", "token_b: NOPE")))


if __name__ == "__main__":
    unittest.main()
