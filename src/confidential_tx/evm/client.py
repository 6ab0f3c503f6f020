"""Chain client that signs, sends and confirms transactions through web3.py."""

from __future__ import annotations

import logging
from typing import Any

from eth_typing import HexStr
from web3.exceptions import TransactionNotFound
from web3.logs import DISCARD
from web3.types import TxParams

from ..base import ChainClient
from ..config import DEFAULT_RECEIPT_TIMEOUT
from ..exceptions import ValidationError
from ..types import ContractCall, PreparedTransaction, Receipt, TransactionHandle
from .connections import Web3Connections

logger = logging.getLogger(__name__)


class Web3ChainClient(ChainClient):
    """Encapsulate contract transaction signing, submission and receipt handling."""

    def __init__(
        self,
        connections: Web3Connections,
        *,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        self._connections = connections
        self._receipt_timeout = receipt_timeout

    async def prepare(self, call: ContractCall) -> PreparedTransaction:
        self._connections.ensure_connected()
        web3 = self._connections.web3
        account = self._connections.account(call.sender)

        nonce = await web3.eth.get_transaction_count(account.address, "pending")
        params: TxParams = {
            "from": account.address,
            "nonce": nonce,
            "chainId": self._connections.chain_id,
        }
        if call.gas_limit is not None:
            params["gas"] = call.gas_limit
        if call.gas_price is not None:
            params["gasPrice"] = call.gas_price

        transaction = await self._contract_function(call).build_transaction(params)
        signed = account.sign_transaction(transaction)
        tx_hash = signed.hash.to_0x_hex()
        logger.debug("Prepared %s nonce=%s hash=%s", call.label, nonce, tx_hash)
        return PreparedTransaction(
            tx_hash=tx_hash,
            raw_transaction=bytes(signed.raw_transaction),
            nonce=nonce,
            call=call,
        )

    async def send(self, prepared: PreparedTransaction) -> TransactionHandle:
        self._connections.ensure_connected()
        logger.info("Dispatching %s", prepared.call.label)
        tx_hash = await self._connections.web3.eth.send_raw_transaction(prepared.raw_transaction)
        return TransactionHandle(tx_hash.to_0x_hex(), prepared.call)

    async def confirm(self, handle: TransactionHandle) -> Receipt:
        self._connections.ensure_connected()
        receipt = await self._connections.web3.eth.wait_for_transaction_receipt(
            HexStr(handle.tx_hash), timeout=self._receipt_timeout
        )
        return Receipt.from_web3(receipt)

    async def lookup_receipt(self, tx_hash: str) -> Receipt | None:
        self._connections.ensure_connected()
        try:
            receipt = await self._connections.web3.eth.get_transaction_receipt(HexStr(tx_hash))
        except TransactionNotFound:
            return None
        return Receipt.from_web3(receipt)

    async def read(self, call: ContractCall) -> Any:
        self._connections.ensure_connected()
        params: TxParams = {"from": call.sender.address}
        if call.gas_limit is not None:
            params["gas"] = call.gas_limit
        logger.debug("Reading %s", call.label)
        return await self._contract_function(call).call(params)

    def decode_events(
        self, call: ContractCall, receipt: Receipt, event_name: str
    ) -> list[dict[str, Any]]:
        if receipt.raw is None:
            return []
        interface = call.target.interface
        if interface is None or not interface.has_event(event_name):
            raise ValidationError(
                f"Unknown event '{event_name}'", field="event_name", value=event_name
            )
        contract = self._connections.contract(interface)
        event = getattr(contract.events, event_name)()
        decoded = event.process_receipt(receipt.raw, errors=DISCARD)
        return [dict(item["args"]) for item in decoded]

    def _contract_function(self, call: ContractCall) -> Any:
        interface = call.target.interface
        if interface is None:
            raise ValidationError(
                "Call target is not bound to a contract interface",
                field="target",
                value=call.target.describe(),
            )
        contract = self._connections.contract(interface)
        return getattr(contract.functions, call.target.function_name)(*call.args)
