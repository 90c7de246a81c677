"""Tests for drop configuration loading and chain settings."""

import json
from pathlib import Path

import pytest

from lodge.config import ChainSettings, DropConfig, load_environment
from lodge.errors import ConfigurationError, InvalidCollectionLayout, OpenSaleBeforeWhitelistSale
from lodge.models.rarity import THE_LODGE_LAYOUT, Rarity
from lodge.service import TheLodge

from conftest import OWNER, DROP_ADDRESS, FakeRandomnessService

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _minimal() -> dict:
    return {
        "sale": {
            "token_name": "Minimal",
            "token_symbol": "MIN",
            "nft_price": 1,
            "max_tokens_per_address": 1,
            "sale_start_timestamp": 10,
            "open_sale_start_timestamp": 20,
            "max_delay": 60,
            "alternative_payment_token": "0x" + "11" * 20,
            "oracle": "0x" + "22" * 20,
        },
        "revelation": {"vrf_coordinator": "0x" + "33" * 20},
    }


class TestShippedConfig:
    def test_the_lodge_values(self) -> None:
        config = DropConfig.from_config_dir(CONFIG_DIR)
        assert config.sale.token_name == "The Lodge"
        assert config.sale.token_symbol == "TLDG"
        assert config.sale.nft_price == 77 * 10 ** 15
        assert config.sale.max_tokens_per_address == 7
        assert config.sale.sale_start_timestamp == config.sale.open_sale_start_timestamp
        assert config.revelation.request_confirmations == 3
        assert config.revelation.callback_gas_limit == 100_000
        assert config.layout.total_supply == 7777
        assert config.layout.bands() == THE_LODGE_LAYOUT.bands()

    def test_builds_a_drop(self) -> None:
        drop = TheLodge.from_config_dir(
            CONFIG_DIR, owner=OWNER, address=DROP_ADDRESS, randomness=FakeRandomnessService(),
        )
        assert drop.name == "The Lodge"
        assert drop.max_supply == 7777
        assert drop.total_supply() == 0


class TestFromDict:
    def test_minimal_defaults(self) -> None:
        config = DropConfig.from_dict(_minimal())
        assert config.layout is THE_LODGE_LAYOUT
        assert config.uris.base_uri == ""
        assert config.revelation.sub_id == 0
        assert config.sale.merkle_root == "0x" + "00" * 32

    def test_missing_section(self) -> None:
        data = _minimal()
        del data["revelation"]
        with pytest.raises(ConfigurationError, match="revelation"):
            DropConfig.from_dict(data)

    def test_unknown_field(self) -> None:
        data = _minimal()
        data["sale"]["surprise"] = True
        with pytest.raises(ConfigurationError, match="Malformed"):
            DropConfig.from_dict(data)

    def test_start_timestamp_order(self) -> None:
        data = _minimal()
        data["sale"]["open_sale_start_timestamp"] = 5
        with pytest.raises(OpenSaleBeforeWhitelistSale):
            DropConfig.from_dict(data)

    def test_custom_layout(self) -> None:
        data = _minimal()
        data["layout"] = {
            "total_supply": 3,
            "bands": [
                {"rarity": "APPRENTICE", "first_id": 1, "natural_count": 2, "group_size": 2},
                {"rarity": "FELLOW", "first_id": 3, "natural_count": 1, "promotion_slots": 1},
                {"rarity": "MASTER", "first_id": 5, "natural_count": 0},
                {"rarity": "TRANSCENDED", "first_id": 6, "natural_count": 0},
            ],
        }
        config = DropConfig.from_dict(data)
        assert config.layout.total_supply == 3
        assert config.layout.band(Rarity.FELLOW).reserved_first_id == 4

    def test_unknown_rarity(self) -> None:
        data = _minimal()
        data["layout"] = {
            "total_supply": 1,
            "bands": [{"rarity": "LEGENDARY", "first_id": 1, "natural_count": 1}],
        }
        with pytest.raises(ConfigurationError, match="LEGENDARY"):
            DropConfig.from_dict(data)

    def test_inconsistent_layout(self) -> None:
        data = _minimal()
        data["layout"] = {
            "total_supply": 5,
            "bands": [
                {"rarity": "APPRENTICE", "first_id": 1, "natural_count": 1},
                {"rarity": "FELLOW", "first_id": 2, "natural_count": 0},
                {"rarity": "MASTER", "first_id": 3, "natural_count": 0},
                {"rarity": "TRANSCENDED", "first_id": 4, "natural_count": 0},
            ],
        }
        with pytest.raises(InvalidCollectionLayout):
            DropConfig.from_dict(data)


class TestFromJson:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            DropConfig.from_json(tmp_path / "nope.json")

    def test_round_trip_through_file(self, tmp_path: Path) -> None:
        path = tmp_path / "drop.json"
        path.write_text(json.dumps(_minimal()), encoding="utf-8")
        assert DropConfig.from_json(path).sale.token_symbol == "MIN"


class TestChainSettings:
    def test_from_mapping(self) -> None:
        settings = ChainSettings.from_env(
            {"LODGE_RPC_URL": "http://localhost:8545", "LODGE_PRIVATE_KEY": "0xabc", "LODGE_CHAIN_ID": "1"}
        )
        assert settings.rpc_url == "http://localhost:8545"
        assert settings.chain_id == 1
        assert "0xabc" not in repr(settings)

    def test_chain_id_optional(self) -> None:
        settings = ChainSettings.from_env({"LODGE_RPC_URL": "http://x", "LODGE_PRIVATE_KEY": "0xabc"})
        assert settings.chain_id is None

    def test_missing_credentials(self) -> None:
        with pytest.raises(ConfigurationError):
            ChainSettings.from_env({"LODGE_RPC_URL": "http://x"})

    def test_bad_chain_id(self) -> None:
        with pytest.raises(ConfigurationError, match="LODGE_CHAIN_ID"):
            ChainSettings.from_env(
                {"LODGE_RPC_URL": "http://x", "LODGE_PRIVATE_KEY": "0xabc", "LODGE_CHAIN_ID": "mainnet"}
            )

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # setenv then delenv so teardown removes whatever load_dotenv writes
        for name in ("LODGE_RPC_URL", "LODGE_PRIVATE_KEY", "LODGE_CHAIN_ID"):
            monkeypatch.setenv(name, "placeholder")
            monkeypatch.delenv(name)
        (tmp_path / ".env").write_text(
            "LODGE_RPC_URL=http://from-dotenv\nLODGE_PRIVATE_KEY=0xdef\n", encoding="utf-8"
        )
        assert load_environment(tmp_path)
        settings = ChainSettings.from_env()
        assert settings.rpc_url == "http://from-dotenv"
        assert settings.chain_id is None

    def test_no_dotenv_file(self, tmp_path: Path) -> None:
        assert not load_environment(tmp_path)
