# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Value objects carried by the authenticated attributes of a SCEP message."""

import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization

from scep_logic.oid_mapping import compute_hash
from scep_logic.typingutils import VerifyKey

NONCE_SIZE = 16


@dataclass(frozen=True)
class TransactionId:
    """Correlates all messages of one enrollment exchange.

    Attributes:
        value: The raw bytes of the `transactionID` attribute.

    """

    value: bytes

    @staticmethod
    def create(public_key: VerifyKey, hash_alg: str = "sha256") -> "TransactionId":
        """Derive a transaction ID from the public key of the requester.

        The ID is the uppercase hex digest of the DER-encoded `SubjectPublicKeyInfo`,
        so that repeated requests for the same key share an ID.

        :param public_key: The public key that will be certified.
        :param hash_alg: The hash algorithm to use. Defaults to "sha256".
        :return: The new `TransactionId`.
        """
        spki = public_key.public_bytes(
            encoding=serialization.Encoding.DER, format=serialization.PublicFormat.SubjectPublicKeyInfo
        )
        return TransactionId(compute_hash(hash_alg, spki).hex().upper().encode("ascii"))

    def __str__(self) -> str:
        return self.value.decode("ascii", errors="replace")


@dataclass(frozen=True)
class Nonce:
    """A single-use value for replay protection (`senderNonce` or `recipientNonce`).

    An empty nonce stands for an attribute that the peer did not send.
    """

    value: bytes

    @staticmethod
    def next_nonce() -> "Nonce":
        """Return a fresh random nonce of 16 bytes."""
        return Nonce(os.urandom(NONCE_SIZE))

    @staticmethod
    def empty() -> "Nonce":
        """Return the explicit empty nonce."""
        return Nonce(b"")

    @property
    def is_empty(self) -> bool:
        """Return `True` if the nonce was absent in the message."""
        return not self.value

    def __bool__(self) -> bool:
        return not self.is_empty

    def __str__(self) -> str:
        return f"Nonce [{self.value.hex()}]"
