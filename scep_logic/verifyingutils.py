# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Verify the signature of a SCEP `SignedData` structure.

The `SignerInfo` is located by the identity of the expected signer certificate. The signature is
checked with the certificate embedded in the `certificates` field, if it is the expected one. If the
signer did not include it, the configured policy decides whether the message is accepted unverified.
"""

import logging
from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.exceptions import UnsupportedAlgorithm as CryptoUnsupportedAlgorithm
from pyasn1.type import univ
from pyasn1_modules import rfc5280, rfc5652

from scep_logic import certutils
from scep_logic.asn1utils import encode_to_der, try_decode_pyasn1
from scep_logic.certextractutils import cert_matches_identifier, find_embedded_certificate
from scep_logic.config_vars import DecoderConfig
from scep_logic.exceptions import BadAsn1Data, SignerNotFound, UnverifiedSigner, VerificationFailure
from scep_logic.oid_mapping import compute_hash, get_hash_from_oid, get_hash_from_sig_oid, may_return_oid_to_name
from scep_logic.oidutils import rsaEncryption
from scep_logic.scep_enums import VerificationOutcome


def find_signer_info(signed_data: rfc5652.SignedData, signer_cert: rfc5280.Certificate) -> rfc5652.SignerInfo:
    """Return the `SignerInfo` whose `sid` identifies the expected signer certificate.

    :param signed_data: The `SignedData` structure.
    :param signer_cert: The certificate expected to identify the signer.
    :return: The matching `SignerInfo`.
    :raises SignerNotFound: If no `SignerInfo` matches the certificate.
    """
    for signer_info in signed_data["signerInfos"]:
        if cert_matches_identifier(signer_cert, signer_info["sid"]):
            return signer_info

    raise SignerNotFound(
        "No `SignerInfo` matches the expected signer certificate.",
        error_details=f"Number of `SignerInfo` structures: {len(signed_data['signerInfos'])}",
    )


def get_encap_content(signed_data: rfc5652.SignedData) -> bytes:
    """Return the `eContent` of a `SignedData` structure, or empty bytes if it is absent."""
    e_content = signed_data["encapContentInfo"]["eContent"]
    if not e_content.isValue:
        return b""
    return e_content.asOctets()


def get_message_digest_attr(signed_attrs: rfc5652.SignedAttributes) -> bytes:
    """Return the value of the `messageDigest` attribute.

    :param signed_attrs: The signed attributes of the `SignerInfo`.
    :return: The message digest.
    :raises VerificationFailure: If the attribute is absent or malformed.
    """
    found = [attr for attr in signed_attrs if attr["attrType"] == rfc5652.id_messageDigest]
    if len(found) != 1 or len(found[0]["attrValues"]) != 1:
        raise VerificationFailure("The signed attributes must contain exactly one `messageDigest` value.")

    try:
        digest, rest = try_decode_pyasn1(found[0]["attrValues"][0], univ.OctetString())
    except BadAsn1Data as err:
        raise VerificationFailure("The `messageDigest` attribute is not an `OCTET STRING`.") from err

    if rest:
        raise VerificationFailure("The `messageDigest` attribute had a remainder.")
    return digest.asOctets()


def get_signed_attrs_der(signed_attrs: rfc5652.SignedAttributes) -> bytes:
    """Return the DER encoding of the signed attributes as they are signed.

    The signature is computed over the `SET OF` encoding, not the `[0] IMPLICIT` one of the `SignerInfo`.
    """
    der_data = encode_to_der(signed_attrs)
    return b"\x31" + der_data[1:]


def _get_hash_algs(signer_info: rfc5652.SignerInfo, config: DecoderConfig) -> Tuple[str, Optional[str]]:
    """Return the digest algorithm and the hash algorithm of the signature."""
    dig_oid = signer_info["digestAlgorithm"]["algorithm"]
    try:
        digest_alg = get_hash_from_oid(dig_oid)
    except ValueError as err:
        raise VerificationFailure(str(err), failinfo="badAlg") from err

    if digest_alg not in config.allowed_digest_algs:
        raise VerificationFailure(
            f"The digest algorithm `{digest_alg}` is not allowed.",
            error_details=f"Allowed are: {list(config.allowed_digest_algs)}",
            failinfo="badAlg",
        )

    sig_oid = signer_info["signatureAlgorithm"]["algorithm"]
    if sig_oid == rsaEncryption:
        return digest_alg, digest_alg

    try:
        return digest_alg, get_hash_from_sig_oid(sig_oid)
    except ValueError as err:
        raise VerificationFailure(
            f"Unsupported signature algorithm: {may_return_oid_to_name(sig_oid)}", failinfo="badAlg"
        ) from err


def verify_signer_info(
    signed_data: rfc5652.SignedData,
    signer_info: rfc5652.SignerInfo,
    cert: rfc5280.Certificate,
    config: Optional[DecoderConfig] = None,
) -> None:
    """Verify the signature of a `SignerInfo` with the given certificate.

    With signed attributes present, the `messageDigest` attribute must equal the digest of the
    `eContent` and the signature is checked over the signed attributes. Otherwise, the signature
    is checked over the `eContent` itself.

    :param signed_data: The `SignedData` structure containing the `SignerInfo`.
    :param signer_info: The `SignerInfo` to verify.
    :param cert: The certificate of the signer.
    :param config: The decoder configuration. Defaults to `DecoderConfig()`.
    :raises VerificationFailure: If the digest or the signature is invalid or the algorithm is not supported.
    """
    config = config or DecoderConfig()
    digest_alg, sig_hash_alg = _get_hash_algs(signer_info, config)
    e_content = get_encap_content(signed_data)

    signed_attrs = signer_info["signedAttrs"]
    if signed_attrs.isValue:
        if config.check_message_digest:
            message_digest = get_message_digest_attr(signed_attrs)
            if message_digest != compute_hash(digest_alg, e_content):
                raise VerificationFailure(
                    "The `messageDigest` attribute does not match the digest of the `eContent`.",
                    error_details=f"Digest algorithm: {digest_alg}",
                )
        data = get_signed_attrs_der(signed_attrs)
    else:
        data = e_content

    try:
        certutils.verify_signature_with_cert(
            cert, data=data, signature=signer_info["signature"].asOctets(), hash_alg=sig_hash_alg
        )
    except InvalidSignature as err:
        raise VerificationFailure("The signature of the `SignerInfo` is invalid.") from err
    except (ValueError, TypeError, CryptoUnsupportedAlgorithm) as err:
        raise VerificationFailure(f"The signature could not be verified: {err}") from err

    logging.debug(
        "Verified the `SignerInfo` with the certificate with serial number: %s",
        int(cert["tbsCertificate"]["serialNumber"]),
    )


def verify_signed_data(
    signed_data: rfc5652.SignedData,
    signer_cert: rfc5280.Certificate,
    config: Optional[DecoderConfig] = None,
) -> Tuple[rfc5652.SignerInfo, VerificationOutcome]:
    """Authenticate a SCEP `SignedData` structure.

    Locates the `SignerInfo` of the expected signer. If the signer included the expected certificate,
    the signature is verified with it. An embedded certificate which only shares the identifier with
    the expected one is not trusted. Otherwise, the message is verified with the expected certificate,
    accepted unverified or rejected, as configured.

    :param signed_data: The `SignedData` structure.
    :param signer_cert: The certificate expected to identify the signer.
    :param config: The decoder configuration. Defaults to `DecoderConfig()`.
    :return: The located `SignerInfo` and the verification outcome.
    :raises SignerNotFound: If no `SignerInfo` matches the certificate.
    :raises VerificationFailure: If the signature is invalid.
    :raises UnverifiedSigner: If the signature cannot be checked and unverified messages are rejected.
    """
    config = config or DecoderConfig()
    signer_info = find_signer_info(signed_data, signer_cert)

    cert = find_embedded_certificate(signed_data, signer_info["sid"])
    if cert is not None and encode_to_der(cert) != encode_to_der(signer_cert):
        # Issuer and serial number (or the SKI) can be copied into a certificate of another key.
        logging.warning("The embedded certificate matching the `sid` is not the expected signer certificate.")
        cert = None

    if cert is None:
        if config.verify_with_signer_cert:
            cert = signer_cert
        elif config.allow_unverified:
            logging.warning(
                "The expected signer certificate is not included in the `SignedData`. "
                "Accepting the message without verifying the signature."
            )
            return signer_info, VerificationOutcome.UNVERIFIED_ACCEPTED
        else:
            raise UnverifiedSigner(
                "The expected signer certificate is not included, so the signature cannot be verified."
            )

    verify_signer_info(signed_data, signer_info, cert, config)
    return signer_info, VerificationOutcome.VERIFIED
