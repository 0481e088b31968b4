# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Utility functions for extracting information from certificates and `SignedData` structures.

Like the SubjectKeyIdentifier extension, which is needed to match a certificate against the
`sid` of a `SignerInfo` or the `rid` of a `KeyTransRecipientInfo`, and the certificates and
CRLs carried inside a degenerate `SignedData` structure.
"""

import logging
from typing import List, Optional, Union

from pyasn1.type import univ
from pyasn1_modules import rfc5280, rfc5652

from scep_logic.asn1utils import decode_der_strict, encode_to_der
from scep_logic.exceptions import BadAsn1Data

# Both `SignerIdentifier` and `RecipientIdentifier` are a CHOICE of
# `issuerAndSerialNumber` and `subjectKeyIdentifier`.
Identifier = Union[rfc5652.SignerIdentifier, rfc5652.RecipientIdentifier]


def get_extension(extensions: rfc5280.Extensions, oid: univ.ObjectIdentifier) -> Optional[rfc5280.Extension]:
    """Extract an extension with the given Object Identifier (OID).

    :param extensions: List of extensions to search.
    :param oid: The OID of the desired extension.
    :return: The matching extension, or None if not found.
    """
    if not extensions.isValue:
        logging.debug("No `extensions` found in the certificate.")
        return None

    for ext in extensions:
        if ext["extnID"] == oid:
            return ext
    return None


def get_subject_key_identifier(cert: rfc5280.Certificate) -> Optional[bytes]:
    """Extract the subjectKeyIdentifier from a pyasn1 `Certificate`, if present.

    :param cert: The certificate to extract the extension from.
    :return: `None` if not present. Else digest `Bytes`.
    :raises BadAsn1Data: If the extension value cannot be decoded.
    """
    extn_val = get_extension(cert["tbsCertificate"]["extensions"], rfc5280.id_ce_subjectKeyIdentifier)
    if extn_val is None:
        return None
    ski = decode_der_strict(extn_val["extnValue"], rfc5280.SubjectKeyIdentifier())
    return ski.asOctets()


def cert_matches_issuer_and_serial(cert: rfc5280.Certificate, iss_ser: rfc5652.IssuerAndSerialNumber) -> bool:
    """Check if the certificate is the one named by an `IssuerAndSerialNumber` structure.

    The issuer names are compared by their DER encoding.

    :param cert: The certificate to check.
    :param iss_ser: The `IssuerAndSerialNumber` structure.
    :return: `True` if issuer and serial number are equal.
    """
    if int(cert["tbsCertificate"]["serialNumber"]) != int(iss_ser["serialNumber"]):
        return False
    return encode_to_der(cert["tbsCertificate"]["issuer"]) == encode_to_der(iss_ser["issuer"])


def cert_matches_identifier(cert: rfc5280.Certificate, identifier: Identifier) -> bool:
    """Check if the certificate matches the `sid` of a `SignerInfo` or the `rid` of a `KeyTransRecipientInfo`.

    :param cert: The certificate to check.
    :param identifier: The `SignerIdentifier` or `RecipientIdentifier`.
    :return: `True` if the certificate is the identified one.
    """
    choice = identifier.getName()
    if choice == "issuerAndSerialNumber":
        return cert_matches_issuer_and_serial(cert, identifier["issuerAndSerialNumber"])

    if choice == "subjectKeyIdentifier":
        try:
            ski = get_subject_key_identifier(cert)
        except BadAsn1Data as err:
            logging.debug("Skipping a certificate with an invalid SubjectKeyIdentifier: %s", err.message)
            return False

        if ski is None:
            logging.debug("The certificate has no SubjectKeyIdentifier, so it cannot match a `subjectKeyIdentifier`.")
            return False
        return ski == identifier["subjectKeyIdentifier"].asOctets()

    logging.debug("Unknown identifier choice: %s", choice)
    return False


def get_certificates_from_signed_data(signed_data: rfc5652.SignedData) -> List[rfc5280.Certificate]:
    """Return all X.509 certificates carried in the `certificates` field of a `SignedData` structure.

    Other certificate formats (attribute certificates, `other`) are skipped.

    :param signed_data: The `SignedData` structure.
    :return: The list of certificates, may be empty.
    """
    if not signed_data["certificates"].isValue:
        return []

    certs = []
    for cert_choice in signed_data["certificates"]:
        if cert_choice.getName() == "certificate":
            certs.append(cert_choice["certificate"])
    return certs


def get_crls_from_signed_data(signed_data: rfc5652.SignedData) -> List[rfc5280.CertificateList]:
    """Return all CRLs carried in the `crls` field of a `SignedData` structure.

    :param signed_data: The `SignedData` structure.
    :return: The list of CRLs, may be empty.
    """
    if not signed_data["crls"].isValue:
        return []

    crls = []
    for crl_choice in signed_data["crls"]:
        if crl_choice.getName() == "crl":
            crls.append(crl_choice["crl"])
    return crls


def find_embedded_certificate(
    signed_data: rfc5652.SignedData, identifier: rfc5652.SignerIdentifier
) -> Optional[rfc5280.Certificate]:
    """Find the certificate of the signer inside the `certificates` field of a `SignedData` structure.

    :param signed_data: The `SignedData` structure.
    :param identifier: The `sid` of the `SignerInfo`.
    :return: The matching certificate or `None`, if the signer did not include it.
    """
    for cert in get_certificates_from_signed_data(signed_data):
        if cert_matches_identifier(cert, identifier):
            return cert
    return None
