# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Utilities for mapping between OIDs, algorithm names and `cryptography` instances."""

from typing import Optional

from cryptography.hazmat.primitives import hashes
from pyasn1.type import univ

from scep_logic.oidutils import ALL_KNOWN_OIDS_2_NAME, ED_OID_2_NAME, MSG_SIG_ALG, SHA_OID_2_NAME

ALLOWED_HASH_TYPES = {
    "md5": hashes.MD5(),
    "sha1": hashes.SHA1(),
    "sha224": hashes.SHA224(),
    "sha256": hashes.SHA256(),
    "sha384": hashes.SHA384(),
    "sha512": hashes.SHA512(),
}


def hash_name_to_instance(alg: str) -> hashes.HashAlgorithm:
    """Return an instance of a hash algorithm object based on its name.

    :param alg: The name of hashing algorithm, e.g., 'sha256' or 'rsa-sha256'.
    :return: `cryptography.hazmat.primitives.hashes`
    :raises ValueError: If the specified hash algorithm is not supported.
    """
    try:
        # to also get the hash function with rsa-sha1 and so on.
        if "-" in alg:
            return ALLOWED_HASH_TYPES[alg.split("-")[1]]

        return ALLOWED_HASH_TYPES[alg]
    except KeyError as err:
        raise ValueError(f"Unsupported hash algorithm: {alg}") from err


def compute_hash(alg_name: str, data: bytes) -> bytes:
    """Calculate the hash of data using an algorithm given by its name.

    :param alg_name: The Name of algorithm, e.g., 'sha256', see `ALLOWED_HASH_TYPES`.
    :param data: The buffer we want to hash.
    :return: The resulting hash.
    :raises ValueError: If the specified hash algorithm is not supported.
    """
    digest = hashes.Hash(hash_name_to_instance(alg_name))
    digest.update(data)
    return digest.finalize()


def get_hash_from_oid(oid: univ.ObjectIdentifier) -> str:
    """Return the name of a digest algorithm given by its OID.

    :param oid: The OID of the digest algorithm, e.g. `id-sha256`.
    :return: The name of the hash algorithm, e.g., 'sha256'.
    :raises ValueError: If the OID is not a supported digest algorithm.
    """
    try:
        return SHA_OID_2_NAME[oid]
    except KeyError as err:
        raise ValueError(f"Unknown digest algorithm OID {oid}: {may_return_oid_to_name(oid)}") from err


def get_hash_from_sig_oid(oid: univ.ObjectIdentifier) -> Optional[str]:
    """Return the hash name contained in a signature algorithm OID.

    :param oid: The signature algorithm OID, e.g. `sha256WithRSAEncryption`.
    :return: The name of the hash algorithm or `None` for EdDSA.
    :raises ValueError: If the OID is not a known signature algorithm.
    """
    if oid in ED_OID_2_NAME:
        return None

    if oid not in MSG_SIG_ALG:
        raise ValueError(f"Unknown signature algorithm OID {oid}: {may_return_oid_to_name(oid)}")

    return MSG_SIG_ALG[oid].split("-")[1]


def may_return_oid_to_name(oid: univ.ObjectIdentifier) -> str:
    """Check if the oid is Known and then returns a human-readable representation, or the dotted string.

    :param oid: The OID to perform the lookup for.
    :return: Either a human-readable name or the OID as dotted string.
    """
    return ALL_KNOWN_OIDS_2_NAME.get(oid, str(oid))
