#!/usr/bin/env python3
"""
Example: sign an ETH transfer intent as the owner and relay it.

The owner never sends a transaction. The relayer pays gas and, if the
owner's account is not deployed yet, deploys it in the same transaction.

Environment variables:
    BRINK_NETWORKS_FILE  JSON file of named environments
    OWNER_KEY            Owner private key
    RELAYER_KEY          Relayer private key
    RECIPIENT            Address that receives the ETH
"""
import logging
import os

from web3 import Web3

from brink_sdk import BrinkSDK, LocalSigner, NetworkConfig


def main():
    """
    Demonstrate the intent flow:
    1. Compute the owner's counterfactual account address
    2. Pick an unused replay slot
    3. Sign an ETH transfer intent
    4. Inspect the resolved transaction and relay it
    """
    logging.basicConfig(level=logging.INFO)

    OWNER_KEY = os.environ.get("OWNER_KEY")
    RELAYER_KEY = os.environ.get("RELAYER_KEY")
    RECIPIENT = os.environ.get("RECIPIENT")
    network = os.environ.get("BRINK_NETWORK", "goerli")

    if not (OWNER_KEY and RELAYER_KEY and RECIPIENT):
        print("ERROR: OWNER_KEY, RELAYER_KEY and RECIPIENT environment variables are required")
        return

    w3 = Web3(Web3.HTTPProvider(NetworkConfig.get_rpc_url(network)))
    sdk = BrinkSDK(network)

    owner = LocalSigner(OWNER_KEY)
    relayer = LocalSigner(RELAYER_KEY)

    account_signer = sdk.account_signer(owner)
    account = sdk.account(owner.address, w3, signer=relayer)
    print(f"Owner:   {owner.address}")
    print(f"Account: {account.address} (deployed: {account.is_deployed()})")
    print(f"Balance: {Web3.from_wei(account.get_balance(), 'ether')} ETH")

    slot = account.next_bit()
    print(f"Using replay slot {slot.bitmap_index}/{slot.bit}")

    signed = account_signer.sign_eth_transfer(
        slot.bitmap_index, slot.bit, RECIPIENT, Web3.to_wei(0.001, "ether")
    )
    print(f"Signed {signed.signed_params[1].call_data.function_name} via {signed.function_name}")

    info = account.transaction_info(
        signed.function_name, [signed.to, signed.data, signed.signature]
    )
    print(f"Will call {info.contract_name}.{info.function_name} (gas ~{info.gas_estimate})")

    if account.bit_used(slot.bitmap_index, slot.bit):
        print("Slot was consumed by another intent in the meantime; sign again")
        return

    receipt = account.transfer_eth(signed, wait_for_receipt=True)
    print(f"Mined in block {receipt.block_number} with status {receipt.status}")
    print(f"Slot used now: {account.bit_used(slot.bitmap_index, slot.bit)}")


if __name__ == "__main__":
    main()
