"""Live-chain adapters for the price feed and the payment token.

These satisfy the PriceFeed and PaymentToken protocols against real
contracts through web3. Reads are plain eth_call. Writes (transfer,
transferFrom) are signed locally with eth-account, sent raw, and wait
for one receipt; a reverted receipt reports as a False return, the same
as an ERC-20 that returns false.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from web3 import Web3

from lodge.config import ChainSettings
from lodge.crypto.addresses import checksum
from lodge.sale.oracle import RoundData

logger = logging.getLogger(__name__)

AGGREGATOR_V3_ABI = [
    {
        "inputs": [],
        "name": "latestRoundData",
        "outputs": [
            {"name": "roundId", "type": "uint80"},
            {"name": "answer", "type": "int256"},
            {"name": "startedAt", "type": "uint256"},
            {"name": "updatedAt", "type": "uint256"},
            {"name": "answeredInRound", "type": "uint80"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC20_ABI = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transferFrom",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

RECEIPT_TIMEOUT_SECONDS = 300


def connect(settings: ChainSettings) -> tuple[Web3, Any]:
    """Open an HTTP provider and load the signing account."""
    from web3 import HTTPProvider
    from eth_account import Account

    w3 = Web3(HTTPProvider(settings.rpc_url))
    account = Account.from_key(settings.private_key)
    return w3, account


class ChainlinkPriceFeed:
    """AggregatorV3Interface reader."""

    def __init__(self, w3: Web3, address: str) -> None:
        self._contract = w3.eth.contract(address=checksum(address), abi=AGGREGATOR_V3_ABI)

    def latest_round_data(self) -> RoundData:
        round_id, answer, started_at, updated_at, answered_in_round = (
            self._contract.functions.latestRoundData().call()
        )
        return RoundData(
            round_id=round_id,
            answer=answer,
            started_at=started_at,
            updated_at=updated_at,
            answered_in_round=answered_in_round,
        )


class Erc20PaymentToken:
    """ERC-20 token driven by a local signing account.

    The account is the drop's treasury: transfer() spends its balance and
    transfer_from() pulls buyers' allowances into it.
    """

    def __init__(
        self,
        w3: Web3,
        address: str,
        account: Any,
        chain_id: Optional[int] = None,
    ) -> None:
        self._w3 = w3
        self._contract = w3.eth.contract(address=checksum(address), abi=ERC20_ABI)
        self._account = account
        self._chain_id = chain_id
        self._decimals: Optional[int] = None

    def decimals(self) -> int:
        if self._decimals is None:
            self._decimals = self._contract.functions.decimals().call()
        return self._decimals

    def balance_of(self, owner: str) -> int:
        return self._contract.functions.balanceOf(checksum(owner)).call()

    def transfer(self, recipient: str, amount: int) -> bool:
        return self._send(self._contract.functions.transfer(checksum(recipient), amount))

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        return self._send(
            self._contract.functions.transferFrom(checksum(sender), checksum(recipient), amount)
        )

    def _send(self, call: Any) -> bool:
        """Sign, send and wait for one receipt. Returns the receipt status."""
        tx_params: dict[str, Any] = {
            "from": self._account.address,
            "nonce": self._w3.eth.get_transaction_count(self._account.address),
        }
        if self._chain_id is not None:
            tx_params["chainId"] = self._chain_id
        tx = call.build_transaction(tx_params)
        signed = self._account.sign_transaction(tx)
        tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        logger.debug("sent %s", tx_hash.hex())
        receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=RECEIPT_TIMEOUT_SECONDS)
        ok = receipt["status"] == 1
        if not ok:
            logger.debug("transaction %s reverted in block %s", tx_hash.hex(), receipt["blockNumber"])
        return ok
