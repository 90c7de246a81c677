"""Drop configuration — sale, revelation, URI and layout settings.

A drop is described by one JSON document:

    {
      "sale": {...SaleConfiguration fields...},
      "revelation": {"vrf_coordinator": "0x...", "key_hash": "0x...", ...},
      "uris": {"base_uri": "ipfs://.../", "unrevealed_uri": "ipfs://..."},
      "layout": {"total_supply": 7777, "bands": [{"rarity": "APPRENTICE", ...}]}
    }

"layout" may be omitted, in which case The Lodge's 7777-token layout is
used. Chain credentials never live in this file; they come from the
environment (optionally a .env file at the project root).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from lodge.errors import ConfigurationError
from lodge.models.rarity import THE_LODGE_LAYOUT, CollectionLayout, Rarity, RarityBand
from lodge.models.revelation import RevelationConfig
from lodge.models.sale import SaleConfiguration

DEFAULT_CONFIG_FILENAME = "the_lodge.json"

RPC_URL_VAR = "LODGE_RPC_URL"
PRIVATE_KEY_VAR = "LODGE_PRIVATE_KEY"
CHAIN_ID_VAR = "LODGE_CHAIN_ID"


@dataclass
class UriConfig:
    """Metadata URIs. A revealed token's URI is base_uri + display id."""
    base_uri: str = ""
    unrevealed_uri: str = ""


@dataclass
class DropConfig:
    """Everything needed to stand up one drop."""
    sale: SaleConfiguration
    revelation: RevelationConfig
    uris: UriConfig = field(default_factory=UriConfig)
    layout: CollectionLayout = THE_LODGE_LAYOUT

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DropConfig:
        for section in ("sale", "revelation"):
            if section not in data:
                raise ConfigurationError(f"Drop config missing '{section}' section")
        try:
            sale = SaleConfiguration(**data["sale"])
            revelation = RevelationConfig(**data["revelation"])
            uris = UriConfig(**data.get("uris", {}))
        except TypeError as exc:
            raise ConfigurationError(f"Malformed drop config: {exc}") from exc
        layout = _layout_from_dict(data["layout"]) if "layout" in data else THE_LODGE_LAYOUT
        return cls(sale=sale, revelation=revelation, uris=uris, layout=layout)

    @classmethod
    def from_json(cls, path: Path) -> DropConfig:
        """Load and validate a drop config file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If any section is invalid.
        """
        if not path.exists():
            raise FileNotFoundError(f"Drop config not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> DropConfig:
        return cls.from_json(config_dir / DEFAULT_CONFIG_FILENAME)


def _layout_from_dict(data: Mapping[str, Any]) -> CollectionLayout:
    try:
        bands = [
            RarityBand(
                rarity=Rarity[entry["rarity"]],
                first_id=entry["first_id"],
                natural_count=entry["natural_count"],
                group_size=entry.get("group_size", 1),
                promotion_slots=entry.get("promotion_slots", 0),
                reserved_first_id=entry.get("reserved_first_id"),
            )
            for entry in data["bands"]
        ]
        total_supply = data["total_supply"]
    except KeyError as exc:
        raise ConfigurationError(f"Malformed layout, missing or unknown {exc}") from exc
    return CollectionLayout(total_supply, bands)


# ------------------------------------------------------------------ #
# Environment                                                         #
# ------------------------------------------------------------------ #


def load_environment(root: Path) -> bool:
    """Load ROOT/.env into os.environ. Existing variables win.

    Returns True if a .env file was found.
    """
    return load_dotenv(root / ".env")


@dataclass(frozen=True)
class ChainSettings:
    """RPC endpoint and signing key for live-chain adapters."""
    rpc_url: str
    private_key: str = field(repr=False)
    chain_id: Optional[int] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> ChainSettings:
        env = os.environ if environ is None else environ
        rpc_url = env.get(RPC_URL_VAR)
        private_key = env.get(PRIVATE_KEY_VAR)
        if not rpc_url or not private_key:
            raise ConfigurationError(f"Missing {RPC_URL_VAR} and/or {PRIVATE_KEY_VAR}")

        chain_id: Optional[int] = None
        raw_chain_id = env.get(CHAIN_ID_VAR)
        if raw_chain_id:
            try:
                chain_id = int(raw_chain_id)
            except ValueError:
                raise ConfigurationError(f"{CHAIN_ID_VAR} must be an integer, got {raw_chain_id!r}") from None
        return cls(rpc_url=rpc_url, private_key=private_key, chain_id=chain_id)
