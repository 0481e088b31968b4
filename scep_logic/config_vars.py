# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Dataclasses for configuration variables used by the SCEP message decoder."""

from abc import ABC
from dataclasses import dataclass, fields
from typing import Tuple

from scep_logic.exceptions import BadConfig
from scep_logic.oid_mapping import ALLOWED_HASH_TYPES


@dataclass
class ConfigVal(ABC):
    """Base class for configuration values."""

    def to_dict(self) -> dict:
        """Convert the configuration to a dictionary."""
        out = {}
        for x in fields(self):
            out[x.name] = getattr(self, x.name)
        return out

    @classmethod
    def from_dict(cls, data: dict):
        """Create the configuration from a dictionary.

        :param data: The configuration values, missing keys keep their default.
        :return: The populated configuration.
        :raises BadConfig: If the dictionary contains an unknown key.
        """
        known = {x.name for x in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise BadConfig(f"Unknown configuration keys for `{cls.__name__}`: {unknown}")
        return cls(**data)


@dataclass
class DecoderConfig(ConfigVal):
    """Configuration variables for the signature check of the `PkiMessageDecoder`.

    Attributes:
        allow_unverified: If a message is accepted when the signer certificate is not included
        in the `SignedData` structure. Defaults to `True`.
        verify_with_signer_cert: If the expected signer certificate is used to check the signature,
        when the certificate is not included. Defaults to `False`.
        check_message_digest: If the `messageDigest` attribute must match the digest of the content.
        Defaults to `True`.
        allowed_digest_algs: The digest algorithms accepted for the `SignerInfo`. Defaults to all supported.

    """

    allow_unverified: bool = True
    verify_with_signer_cert: bool = False
    check_message_digest: bool = True
    allowed_digest_algs: Tuple[str, ...] = tuple(ALLOWED_HASH_TYPES)

    def __post_init__(self):
        """Validate the configured digest algorithms."""
        self.allowed_digest_algs = tuple(self.allowed_digest_algs)
        unsupported = [alg for alg in self.allowed_digest_algs if alg not in ALLOWED_HASH_TYPES]
        if unsupported:
            raise BadConfig(
                f"Unsupported digest algorithms: {unsupported}",
                error_details=f"Supported are: {list(ALLOWED_HASH_TYPES)}",
            )
