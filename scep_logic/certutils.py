# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Utilities to parse certificates and use their public keys."""

from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pyasn1_modules import rfc5280

from scep_logic import cryptoutils
from scep_logic.asn1utils import decode_der_strict, encode_to_der
from scep_logic.typingutils import CertType, VerifyKey


def parse_certificate(data: bytes) -> rfc5280.Certificate:
    """Parse a DER-encoded X509 certificate into a pyasn1 object.

    :param data: DER-encoded X509 certificate.
    :returns: The decoded certificate object.
    :raises BadAsn1Data: If the data is not a certificate.
    """
    return decode_der_strict(data, rfc5280.Certificate())


def ensure_asn1_certificate(cert: CertType) -> rfc5280.Certificate:
    """Return the pyasn1 representation of a certificate given in any supported form.

    :param cert: A pyasn1 certificate, a `cryptography` certificate or the DER-encoded bytes.
    :return: The pyasn1 certificate.
    """
    if isinstance(cert, rfc5280.Certificate):
        return cert
    if isinstance(cert, x509.Certificate):
        return parse_certificate(cert.public_bytes(serialization.Encoding.DER))
    return parse_certificate(cert)


def load_public_key_from_cert(asn1cert: rfc5280.Certificate) -> VerifyKey:
    """Load the public key of a pyasn1 certificate.

    :param asn1cert: The certificate to extract the public key from.
    :return: The loaded public key.
    :raises ValueError: If the key cannot be loaded.
    """
    spki_der = encode_to_der(asn1cert["tbsCertificate"]["subjectPublicKeyInfo"])
    return serialization.load_der_public_key(spki_der)  # type: ignore


def verify_signature_with_cert(
    asn1cert: rfc5280.Certificate, data: bytes, signature: bytes, hash_alg: Optional[str] = None
) -> None:
    """Verify a signature with a pyasn1 certificate.

    :param asn1cert: The certificate object, to extract the public key from.
    :param data: The data to verify.
    :param signature: The signature to verify against.
    :param hash_alg: The hash algorithm to use for signature verification (e.g., "sha256").
    :raises InvalidSignature: If the signature is invalid.
    """
    pub_key = load_public_key_from_cert(asn1cert)
    cryptoutils.verify_signature(
        public_key=pub_key,
        signature=signature,
        data=data,
        hash_alg=hash_alg,
    )
