# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Extract the SCEP authenticated attributes from the `signedAttrs` of a `SignerInfo`.

The attributes are parsed once into a `ScepAttributeTable`, which maps every known SCEP
attribute to its DER-encoded values. The typed accessors decode the values and raise
`MalformedAttribute` if an attribute is missing, has the wrong number of values or the wrong type.
"""

import enum
import logging
from typing import Dict, Optional, Tuple

from pyasn1.type import char, univ
from pyasn1_modules import rfc5652

from scep_logic.asn1utils import decode_der_strict
from scep_logic.data_objects import Nonce, TransactionId
from scep_logic.exceptions import (
    BadAsn1Data,
    MalformedAttribute,
    UnsupportedFailInfo,
    UnsupportedMessageType,
    UnsupportedPkiStatus,
)
from scep_logic.oid_mapping import may_return_oid_to_name
from scep_logic.oidutils import (
    id_failInfo,
    id_messageType,
    id_pkiStatus,
    id_recipientNonce,
    id_senderNonce,
    id_transactionID,
)
from scep_logic.scep_enums import FailInfo, MessageType, PkiStatus


class ScepAttribute(enum.Enum):
    """The authenticated attributes defined by SCEP, valued with their protocol name."""

    MESSAGE_TYPE = "messageType"
    PKI_STATUS = "pkiStatus"
    FAIL_INFO = "failInfo"
    SENDER_NONCE = "senderNonce"
    RECIPIENT_NONCE = "recipientNonce"
    TRANSACTION_ID = "transactionID"

    @property
    def oid(self) -> univ.ObjectIdentifier:
        """Return the object identifier of the attribute."""
        return _SCEP_ATTRIBUTE_2_OID[self]

    @staticmethod
    def from_oid(oid: univ.ObjectIdentifier) -> Optional["ScepAttribute"]:
        """Return the SCEP attribute for the OID or `None` for other attributes."""
        return _OID_2_SCEP_ATTRIBUTE.get(oid)


_SCEP_ATTRIBUTE_2_OID = {
    ScepAttribute.MESSAGE_TYPE: id_messageType,
    ScepAttribute.PKI_STATUS: id_pkiStatus,
    ScepAttribute.FAIL_INFO: id_failInfo,
    ScepAttribute.SENDER_NONCE: id_senderNonce,
    ScepAttribute.RECIPIENT_NONCE: id_recipientNonce,
    ScepAttribute.TRANSACTION_ID: id_transactionID,
}

_OID_2_SCEP_ATTRIBUTE = {oid: attr for attr, oid in _SCEP_ATTRIBUTE_2_OID.items()}


class ScepAttributeTable:
    """The SCEP attributes of one `SignerInfo`, keyed by `ScepAttribute`.

    Attributes:
        values: Maps every present SCEP attribute to its DER-encoded values.

    """

    def __init__(self, values: Dict[ScepAttribute, Tuple[bytes, ...]]):
        """Initialize the table with the already collected values."""
        self.values = values

    @classmethod
    def from_signed_attrs(cls, signed_attrs: rfc5652.SignedAttributes) -> "ScepAttributeTable":
        """Parse the `signedAttrs` of a `SignerInfo` into a table.

        Attributes which are not defined by SCEP (e.g. `contentType`, `messageDigest` or `signingTime`)
        are ignored.

        :param signed_attrs: The signed attributes, may be absent.
        :return: The populated table.
        :raises MalformedAttribute: If a SCEP attribute is present more than once.
        """
        values: Dict[ScepAttribute, Tuple[bytes, ...]] = {}
        if not signed_attrs.isValue:
            logging.debug("The `SignerInfo` has no signed attributes.")
            return cls(values)

        for attr in signed_attrs:
            scep_attr = ScepAttribute.from_oid(attr["attrType"])
            if scep_attr is None:
                logging.debug("Ignoring the attribute: %s", may_return_oid_to_name(attr["attrType"]))
                continue

            if scep_attr in values:
                raise MalformedAttribute(scep_attr.value, "the attribute is present more than once.")

            values[scep_attr] = tuple(value.asOctets() for value in attr["attrValues"])

        return cls(values)

    def __contains__(self, item: ScepAttribute) -> bool:
        return item in self.values

    def _get_single_value(self, attr: ScepAttribute) -> Optional[bytes]:
        """Return the single DER-encoded value of an attribute or `None` if it is absent."""
        if attr not in self.values:
            return None

        attr_values = self.values[attr]
        if len(attr_values) != 1:
            raise MalformedAttribute(attr.value, f"expected exactly one value, got {len(attr_values)}.")
        return attr_values[0]

    def _decode_value(self, attr: ScepAttribute, asn1_spec, mandatory: bool):
        """Decode the single value of an attribute with the expected type."""
        der_data = self._get_single_value(attr)
        if der_data is None:
            if mandatory:
                raise MalformedAttribute(attr.value, "the mandatory attribute is absent.")
            return None

        try:
            return decode_der_strict(der_data, asn1_spec)
        except BadAsn1Data as err:
            raise MalformedAttribute(
                attr.value, f"expected a `{type(asn1_spec).__name__}` value.", error_details=err.message
            ) from err

    def _get_printable(self, attr: ScepAttribute, mandatory: bool = True) -> Optional[str]:
        value = self._decode_value(attr, char.PrintableString(), mandatory=mandatory)
        return None if value is None else str(value)

    def _get_code(self, attr: ScepAttribute) -> int:
        """Return the numeric code of a mandatory enumeration attribute."""
        text = self._get_printable(attr)
        if not text.isdigit():  # type: ignore
            raise MalformedAttribute(attr.value, f"the value `{text}` is not a numeric code.")
        return int(text)  # type: ignore

    def _get_nonce(self, attr: ScepAttribute) -> Nonce:
        value = self._decode_value(attr, univ.OctetString(), mandatory=False)
        if value is None:
            return Nonce.empty()
        return Nonce(value.asOctets())

    def get_message_type(self) -> MessageType:
        """Return the mandatory `messageType` attribute.

        :raises MalformedAttribute: If the attribute is missing or not a numeric `PrintableString`.
        :raises UnsupportedMessageType: If the code is not a known message type.
        """
        code = self._get_code(ScepAttribute.MESSAGE_TYPE)
        try:
            return MessageType.from_code(code)
        except ValueError as err:
            raise UnsupportedMessageType(str(err)) from err

    def get_transaction_id(self) -> TransactionId:
        """Return the mandatory `transactionID` attribute.

        :raises MalformedAttribute: If the attribute is missing or not a `PrintableString`.
        """
        text = self._get_printable(ScepAttribute.TRANSACTION_ID)
        return TransactionId(text.encode("ascii"))  # type: ignore

    def get_sender_nonce(self) -> Nonce:
        """Return the `senderNonce` attribute or the empty nonce, if the peer omitted it.

        :raises MalformedAttribute: If the attribute is not a single `OCTET STRING`.
        """
        return self._get_nonce(ScepAttribute.SENDER_NONCE)

    def get_recipient_nonce(self) -> Nonce:
        """Return the `recipientNonce` attribute or the empty nonce, if the peer omitted it.

        :raises MalformedAttribute: If the attribute is not a single `OCTET STRING`.
        """
        return self._get_nonce(ScepAttribute.RECIPIENT_NONCE)

    def get_pki_status(self) -> PkiStatus:
        """Return the `pkiStatus` attribute, mandatory for a `CertRep`.

        :raises MalformedAttribute: If the attribute is missing or not a numeric `PrintableString`.
        :raises UnsupportedPkiStatus: If the code is not a known status.
        """
        code = self._get_code(ScepAttribute.PKI_STATUS)
        try:
            return PkiStatus.from_code(code)
        except ValueError as err:
            raise UnsupportedPkiStatus(str(err)) from err

    def get_fail_info(self) -> FailInfo:
        """Return the `failInfo` attribute, mandatory for a `CertRep` with status `FAILURE`.

        :raises MalformedAttribute: If the attribute is missing or not a numeric `PrintableString`.
        :raises UnsupportedFailInfo: If the code is not a known failure reason.
        """
        code = self._get_code(ScepAttribute.FAIL_INFO)
        try:
            return FailInfo.from_code(code)
        except ValueError as err:
            raise UnsupportedFailInfo(str(err)) from err
