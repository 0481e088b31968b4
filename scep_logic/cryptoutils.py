# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Functions for the cryptographic operations needed to process SCEP messages.

Provided primitives are: verifying signatures with the traditional key types a SCEP peer
uses (RSA, ECDSA, Ed25519 and Ed448) and decrypting CBC-mode content with AES or Triple-DES.
The module leverages the `cryptography` library.
"""

import logging
from typing import Optional, Union

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, padding, rsa, x448, x25519
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from scep_logic.exceptions import UnsupportedAlgorithm
from scep_logic.oid_mapping import hash_name_to_instance
from scep_logic.typingutils import VerifyKey


def verify_signature(
    public_key: VerifyKey,
    signature: bytes,
    data: bytes,
    hash_alg: Optional[Union[str, hashes.HashAlgorithm]] = None,
) -> None:
    """Verify a digital signature using the provided public key, data and hash algorithm.

    Key Types and Verification:
        - `RSAPublicKey`: Verifies using PKCS1v15 padding and the provided hash algorithm.
        - `EllipticCurvePublicKey`: Verifies using ECDSA with the provided hash algorithm.
        - `Ed25519PublicKey` and `Ed448PublicKey`: Verifies without a hash algorithm.
        - Unsupported key types (e.g., `X25519PublicKey`, `X448PublicKey`): Raises an error.

    :param public_key: The public key used to verify the signature.
    :param signature: The signature data.
    :param data: The original data that was signed.
    :param hash_alg: Name or instance of the hash algorithm used for verification (e.g., "sha256").
    :raises InvalidSignature: If the signature is invalid.
    :raises ValueError: If an unsupported key type is provided or the hash algorithm is missing.
    """
    if isinstance(hash_alg, str):
        hash_alg = hash_name_to_instance(hash_alg)

    if isinstance(public_key, (ed25519.Ed25519PublicKey, ed448.Ed448PublicKey)):
        public_key.verify(signature, data)
        return

    if isinstance(public_key, (x25519.X25519PublicKey, x448.X448PublicKey)):
        raise ValueError(
            f"Key type '{type(public_key).__name__}' is not used for signing or verifying signatures. "
            "It is used for key exchange."
        )

    if hash_alg is None:
        raise ValueError(f"The {type(public_key).__name__} requires a hash algorithm.")

    if isinstance(public_key, rsa.RSAPublicKey):
        public_key.verify(signature, data, padding=padding.PKCS1v15(), algorithm=hash_alg)
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        public_key.verify(signature, data, ec.ECDSA(hash_alg))
    else:
        raise ValueError(f"Unsupported public key type: {type(public_key).__name__}.")


def _compute_cbc(cipher_alg, block_size: int, data: bytes, iv: bytes, decrypt: bool) -> bytes:
    """Run a block cipher in CBC mode with PKCS#7 padding."""
    cipher = Cipher(cipher_alg, modes.CBC(iv))

    if decrypt:
        decryptor = cipher.decryptor()
        decrypted_data = decryptor.update(data) + decryptor.finalize()

        # Remove padding after decryption
        unpadder = sym_padding.PKCS7(block_size).unpadder()
        return unpadder.update(decrypted_data) + unpadder.finalize()

    # Apply padding before encryption
    padder = sym_padding.PKCS7(block_size).padder()
    padded_data = padder.update(data) + padder.finalize()

    encryptor = cipher.encryptor()
    return encryptor.update(padded_data) + encryptor.finalize()


def compute_aes_cbc(key: bytes, data: bytes, iv: bytes, decrypt: bool = True) -> bytes:
    """Perform AES encryption or decryption in CBC mode.

    :param key: The AES key to be used for encryption/decryption.
    :param data: The plaintext (for encryption) or ciphertext (for decryption).
    :param iv: The initialization vector (IV) to be used in CBC mode.
    :param decrypt: A boolean indicating whether to decrypt (True) or encrypt (False).
    :return: The encrypted or decrypted data as bytes.
    :raises ValueError: If the key size or the IV is invalid, or the padding is incorrect.
    """
    if len(iv) != 16:
        raise ValueError("IV must be 16 bytes long for AES-CBC.")

    return _compute_cbc(algorithms.AES(key), algorithms.AES.block_size, data, iv, decrypt)


def compute_des_ede3_cbc(key: bytes, data: bytes, iv: bytes, decrypt: bool = True) -> bytes:
    """Perform Triple-DES encryption or decryption in CBC mode.

    Triple-DES is still the most widely deployed SCEP content encryption algorithm.

    :param key: The 24-byte Triple-DES key.
    :param data: The plaintext (for encryption) or ciphertext (for decryption).
    :param iv: The 8-byte initialization vector.
    :param decrypt: A boolean indicating whether to decrypt (True) or encrypt (False).
    :return: The encrypted or decrypted data as bytes.
    :raises ValueError: If the key size or the IV is invalid, or the padding is incorrect.
    """
    if len(key) != 24:
        raise ValueError("The key must be 24 bytes long for DES-EDE3-CBC.")
    if len(iv) != 8:
        raise ValueError("IV must be 8 bytes long for DES-EDE3-CBC.")

    return _compute_cbc(TripleDES(key), TripleDES.block_size, data, iv, decrypt)


def decrypt_content(alg_name: str, key: bytes, iv: bytes, data: bytes) -> bytes:
    """Decrypt the `encryptedContent` of an `EnvelopedData` structure.

    :param alg_name: The content encryption algorithm name, e.g. "aes128_cbc" or "des_ede3_cbc".
    :param key: The content-encryption key.
    :param iv: The initialization vector from the algorithm parameters.
    :param data: The encrypted content.
    :return: The decrypted content.
    :raises UnsupportedAlgorithm: If the algorithm is not supported.
    :raises ValueError: If the key length does not match the algorithm or decryption fails.
    """
    logging.info("Decrypting the content with: %s", alg_name)
    if alg_name.startswith("aes"):
        key_size = int(alg_name.replace("_cbc", "").replace("aes", "")) // 8
        if len(key) != key_size:
            raise ValueError(
                f"The length of the content-encryption key ({len(key)}) is different "
                f"than what the {alg_name} algorithm indicates ({key_size})!"
            )
        return compute_aes_cbc(key=key, data=data, iv=iv, decrypt=True)

    if alg_name == "des_ede3_cbc":
        return compute_des_ede3_cbc(key=key, data=data, iv=iv, decrypt=True)

    raise UnsupportedAlgorithm(f"Unsupported content encryption algorithm: {alg_name}")


def decrypt_key_transport(
    private_key: rsa.RSAPrivateKey, encrypted_key: bytes, use_oaep: bool = False, hash_alg: str = "sha1"
) -> bytes:
    """Decrypt the content-encryption key of a `KeyTransRecipientInfo`.

    :param private_key: The RSA private key of the recipient.
    :param encrypted_key: The encrypted content-encryption key.
    :param use_oaep: Whether `RSAES-OAEP` is used instead of PKCS#1 v1.5.
    :param hash_alg: The OAEP hash algorithm, also used for MGF1. Defaults to "sha1".
    :return: The content-encryption key.
    """
    if use_oaep:
        hash_instance = hash_name_to_instance(hash_alg)
        padding_val = padding.OAEP(mgf=padding.MGF1(hash_instance), algorithm=hash_instance, label=None)
    else:
        padding_val = padding.PKCS1v15()

    return private_key.decrypt(encrypted_key, padding_val)
