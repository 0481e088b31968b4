# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Helpers to decode and encode the CMS structures carried by SCEP messages."""

import logging
from typing import Tuple, Union

from pyasn1.codec.der import decoder, encoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import base, univ
from pyasn1_modules import rfc5652

from scep_logic.exceptions import BadAsn1Data, ContentDecodingFailure
from scep_logic.oid_mapping import may_return_oid_to_name


def try_decode_pyasn1(data: Union[bytes, univ.OctetString], asn1_spec: base.Asn1Type) -> Tuple[base.Asn1Type, bytes]:
    """Try to decode DER-encoded data into the given pyasn1 structure.

    :param data: The DER-encoded data.
    :param asn1_spec: The expected structure.
    :return: The decoded structure and the remainder.
    :raises BadAsn1Data: If the data cannot be decoded.
    """
    if isinstance(data, univ.OctetString):
        data = data.asOctets()

    name = type(asn1_spec).__name__
    try:
        return decoder.decode(data, asn1Spec=asn1_spec)
    except PyAsn1Error as err:
        raise BadAsn1Data(f"Error decoding the `{name}` structure: {err}", overwrite=True) from err


def decode_der_strict(data: Union[bytes, univ.OctetString], asn1_spec: base.Asn1Type) -> base.Asn1Type:
    """Decode DER-encoded data and make sure nothing follows the structure.

    :param data: The DER-encoded data.
    :param asn1_spec: The expected structure.
    :return: The decoded structure.
    :raises BadAsn1Data: If the data cannot be decoded or has a remainder.
    """
    obj, rest = try_decode_pyasn1(data, asn1_spec)
    if rest:
        raise BadAsn1Data(type(asn1_spec).__name__, remainder=rest)
    return obj


def encode_to_der(asn1_structure: base.Asn1Type) -> bytes:
    """DER-encode a pyasn1 structure.

    :param asn1_structure: The structure to encode.
    :return: The DER-encoded bytes.
    """
    return encoder.encode(asn1_structure)


def decode_content_info(
    data: Union[bytes, univ.OctetString, rfc5652.ContentInfo], expected_type: univ.ObjectIdentifier
) -> bytes:
    """Unwrap a `ContentInfo` and return the DER-encoded content of the expected content type.

    :param data: The DER-encoded `ContentInfo` or the already decoded structure.
    :param expected_type: The expected `contentType`, e.g. `id-envelopedData`.
    :return: The DER-encoded inner content.
    :raises ContentDecodingFailure: If the data is not a `ContentInfo` of the expected type.
    """
    if isinstance(data, rfc5652.ContentInfo):
        content_info = data
    else:
        content_info = decode_der_strict(data, rfc5652.ContentInfo())

    content_type = content_info["contentType"]
    if content_type != expected_type:
        raise ContentDecodingFailure(
            f"Expected a `ContentInfo` of type {may_return_oid_to_name(expected_type)}, "
            f"but got: {may_return_oid_to_name(content_type)}"
        )

    if not content_info["content"].isValue:
        raise ContentDecodingFailure("The `content` field of the `ContentInfo` structure is absent.")

    return content_info["content"].asOctets()


def parse_signed_data(data: Union[bytes, rfc5652.ContentInfo, rfc5652.SignedData]) -> rfc5652.SignedData:
    """Parse a `SignedData` structure, used for the outer message as well as the nested `CertRep` content.

    :param data: The DER-encoded `ContentInfo`, the decoded `ContentInfo` or an already parsed `SignedData`.
    :return: The `SignedData` structure.
    :raises ContentDecodingFailure: If the data is not a `SignedData` structure.
    """
    if isinstance(data, rfc5652.SignedData):
        return data

    der_data = decode_content_info(data, expected_type=rfc5652.id_signedData)
    return decode_der_strict(der_data, rfc5652.SignedData())


def parse_enveloped_data(data: Union[bytes, univ.OctetString]) -> rfc5652.EnvelopedData:
    """Parse the DER-encoded `ContentInfo` wrapping an `EnvelopedData` structure.

    :param data: The DER-encoded `ContentInfo`.
    :return: The `EnvelopedData` structure.
    :raises ContentDecodingFailure: If the data is not an `EnvelopedData` structure.
    """
    der_data = decode_content_info(data, expected_type=rfc5652.id_envelopedData)
    return decode_der_strict(der_data, rfc5652.EnvelopedData())


def wrap_in_content_info(content: base.Asn1Type, content_type: univ.ObjectIdentifier) -> rfc5652.ContentInfo:
    """Wrap a CMS structure into a `ContentInfo`.

    :param content: The structure to wrap, e.g. `SignedData`.
    :param content_type: The matching content type OID.
    :return: The populated `ContentInfo` structure.
    """
    content_info = rfc5652.ContentInfo()
    content_info["contentType"] = content_type
    content_info["content"] = encoder.encode(content)
    return content_info


def log_asn1(pyasn1_obj: base.Asn1Type) -> None:
    """Log a pyasn1 object as a string for debugging purposes."""
    if isinstance(pyasn1_obj, base.Asn1Type):
        logging.debug(pyasn1_obj.prettyPrint())
    else:
        logging.debug("Cannot prettyPrint this, it is not a pyasn1 object")
