"""Wallet signer for Plumise agent messages.

Messages are signed as EIP-191 personal messages, the same scheme
`ethers.Wallet.signMessage` uses, so the node can recover the agent address.
"""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from .exceptions import SigningError

logger = logging.getLogger("plumise-agent")


class WalletSigner:
    """Holds the agent key and signs text messages."""

    def __init__(self, private_key: str):
        """Load the wallet.

        Args:
            private_key: 32-byte key as hex, with or without 0x prefix

        Raises:
            SigningError: If the key cannot be loaded
        """
        key = private_key if private_key.startswith("0x") else f"0x{private_key}"
        try:
            self._account = Account.from_key(key)
        except Exception as e:
            raise SigningError(f"Invalid private key: {e}") from e

    @property
    def address(self) -> str:
        """Checksummed wallet address."""
        return self._account.address

    def sign(self, message: str) -> str:
        """Sign a text message.

        Returns:
            0x-prefixed 65-byte signature hex

        Raises:
            SigningError: If signing fails
        """
        try:
            signed = self._account.sign_message(encode_defunct(text=message))
        except Exception as e:
            raise SigningError(f"Failed to sign message: {e}") from e

        sig_hex = signed.signature.hex()
        if not sig_hex.startswith("0x"):
            sig_hex = "0x" + sig_hex
        return sig_hex
