# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Decrypt the `EnvelopedData` payload of a SCEP `pkiMessage`.

The decoder only depends on the abstract `EnvelopeDecryptor`. The `KeyTransportEnvelopeDecryptor`
implements the key transport mechanism SCEP mandates: the content-encryption key is encrypted
with the RSA key of the recipient certificate inside a `KeyTransRecipientInfo` structure.
"""

import abc
import logging
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import rsa
from pyasn1.type import univ
from pyasn1_modules import rfc4055, rfc5280, rfc5652

from scep_logic import certutils, cryptoutils
from scep_logic.asn1utils import decode_der_strict
from scep_logic.certextractutils import cert_matches_identifier
from scep_logic.exceptions import EnvelopeDecryptionFailure, ScepError, UnsupportedAlgorithm
from scep_logic.oid_mapping import get_hash_from_oid, may_return_oid_to_name
from scep_logic.oidutils import CONTENT_ENC_ALG, id_RSAES_OAEP, rsaEncryption
from scep_logic.typingutils import CertType, DecryptKey


class EnvelopeDecryptor(abc.ABC):
    """Recovers the plaintext of an `EnvelopedData` structure addressed to the local party."""

    @abc.abstractmethod
    def decrypt(self, enveloped_data: rfc5652.EnvelopedData) -> bytes:
        """Decrypt the `EnvelopedData` structure.

        :param enveloped_data: The parsed `EnvelopedData` structure.
        :return: The decrypted content.
        """


def get_ktri_for_cert(
    enveloped_data: rfc5652.EnvelopedData, recipient_cert: rfc5280.Certificate
) -> rfc5652.KeyTransRecipientInfo:
    """Return the `KeyTransRecipientInfo` whose `rid` identifies the recipient certificate.

    :param enveloped_data: The `EnvelopedData` structure.
    :param recipient_cert: The certificate of the recipient.
    :return: The matching `KeyTransRecipientInfo`.
    :raises EnvelopeDecryptionFailure: If no `KeyTransRecipientInfo` is addressed to the certificate.
    """
    for recip_info in enveloped_data["recipientInfos"]:
        if recip_info.getName() != "ktri":
            logging.debug("Skipping the `%s` recipient info.", recip_info.getName())
            continue

        ktri = recip_info["ktri"]
        if cert_matches_identifier(recipient_cert, ktri["rid"]):
            return ktri

    raise EnvelopeDecryptionFailure(
        "No `KeyTransRecipientInfo` is addressed to the recipient certificate.", failinfo="badCertId"
    )


def _get_oaep_hash_alg(params: univ.Any) -> str:
    """Return the hash algorithm of the `RSAES-OAEP-params`, SHA-1 if the parameters are absent."""
    if not params.isValue:
        return "sha1"

    oaep_params = decode_der_strict(params, rfc4055.RSAES_OAEP_params())
    if not oaep_params["hashFunc"].isValue:
        return "sha1"

    try:
        return get_hash_from_oid(oaep_params["hashFunc"]["algorithm"])
    except ValueError as err:
        raise UnsupportedAlgorithm(str(err)) from err


def decrypt_content_encryption_key(ktri: rfc5652.KeyTransRecipientInfo, private_key: DecryptKey) -> bytes:
    """Decrypt the content-encryption key of a `KeyTransRecipientInfo`.

    :param ktri: The `KeyTransRecipientInfo` addressed to the recipient.
    :param private_key: The RSA private key of the recipient.
    :return: The content-encryption key.
    :raises UnsupportedAlgorithm: If the key encryption algorithm is not supported.
    """
    alg_id = ktri["keyEncryptionAlgorithm"]
    oid = alg_id["algorithm"]
    encrypted_key = ktri["encryptedKey"].asOctets()

    if oid == rsaEncryption:
        logging.info("Decrypting the content-encryption key with RSA PKCS#1 v1.5.")
        return cryptoutils.decrypt_key_transport(private_key, encrypted_key)

    if oid == id_RSAES_OAEP:
        hash_alg = _get_oaep_hash_alg(alg_id["parameters"])
        logging.info("Decrypting the content-encryption key with RSAES-OAEP and %s.", hash_alg)
        return cryptoutils.decrypt_key_transport(private_key, encrypted_key, use_oaep=True, hash_alg=hash_alg)

    raise UnsupportedAlgorithm(f"Unsupported key encryption algorithm: {may_return_oid_to_name(oid)}")


def decrypt_encrypted_content_info(enc_content_info: rfc5652.EncryptedContentInfo, cek: bytes) -> bytes:
    """Decrypt the `encryptedContent` of an `EncryptedContentInfo` structure.

    :param enc_content_info: The `EncryptedContentInfo` structure.
    :param cek: The content-encryption key.
    :return: The decrypted content.
    :raises UnsupportedAlgorithm: If the content encryption algorithm is not supported.
    :raises EnvelopeDecryptionFailure: If the structure carries no encrypted content.
    """
    alg_id = enc_content_info["contentEncryptionAlgorithm"]
    oid = alg_id["algorithm"]
    if oid not in CONTENT_ENC_ALG:
        raise UnsupportedAlgorithm(f"Unsupported content encryption algorithm: {may_return_oid_to_name(oid)}")

    if not enc_content_info["encryptedContent"].isValue:
        raise EnvelopeDecryptionFailure("The `EnvelopedData` structure does not contain an `encryptedContent`.")

    if not alg_id["parameters"].isValue:
        raise EnvelopeDecryptionFailure(f"The `{CONTENT_ENC_ALG[oid]}` parameters (the IV) are absent.")

    iv = decode_der_strict(alg_id["parameters"], univ.OctetString()).asOctets()
    return cryptoutils.decrypt_content(
        alg_name=CONTENT_ENC_ALG[oid],
        key=cek,
        iv=iv,
        data=enc_content_info["encryptedContent"].asOctets(),
    )


class KeyTransportEnvelopeDecryptor(EnvelopeDecryptor):
    """Decrypt an `EnvelopedData` structure with the RSA key of the recipient certificate.

    Supported key transport algorithms are `rsaEncryption` (PKCS#1 v1.5) and `RSAES-OAEP`,
    supported content encryption algorithms are AES-CBC (128, 192 and 256 bits) and DES-EDE3-CBC.

    Attributes:
        recipient_cert: The certificate the `EnvelopedData` is addressed to.
        private_key: The private key of the recipient certificate.

    """

    def __init__(self, recipient_cert: CertType, private_key: DecryptKey):
        """Initialize the decryptor.

        :param recipient_cert: The certificate of the recipient.
        :param private_key: The matching RSA private key.
        :raises ValueError: If the key is not an RSA private key.
        """
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise ValueError(f"Key transport requires an RSA private key, got: {type(private_key).__name__}")

        self.recipient_cert = certutils.ensure_asn1_certificate(recipient_cert)
        self.private_key = private_key

    def decrypt(self, enveloped_data: rfc5652.EnvelopedData) -> bytes:
        """Decrypt the `EnvelopedData` structure.

        :param enveloped_data: The parsed `EnvelopedData` structure.
        :return: The decrypted content.
        :raises EnvelopeDecryptionFailure: If the data is not addressed to the recipient or cannot be decrypted.
        """
        ktri = get_ktri_for_cert(enveloped_data, self.recipient_cert)

        cek: Optional[bytes] = None
        try:
            cek = decrypt_content_encryption_key(ktri, self.private_key)
            return decrypt_encrypted_content_info(enveloped_data["encryptedContentInfo"], cek)
        except EnvelopeDecryptionFailure:
            raise
        except ScepError as err:
            raise EnvelopeDecryptionFailure(err.message, error_details=err.get_error_details()) from err
        except ValueError as err:
            stage = "content-encryption key" if cek is None else "encrypted content"
            raise EnvelopeDecryptionFailure(f"Could not decrypt the {stage}: {err}") from err
