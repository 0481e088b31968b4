# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Enums for the Simple Certificate Enrollment Protocol (SCEP, RFC 8894).

The integer codes are transported as `PrintableString` values inside the authenticated
attributes of a SCEP `SignedData` structure and are fixed by the protocol.
"""

import enum


class MessageType(enum.Enum):
    """The `messageType` values of a SCEP `pkiMessage`."""

    CERT_REP = 3
    PKCS_REQ = 19
    GET_CERT_INITIAL = 20
    GET_CERT = 21
    GET_CRL = 22

    @staticmethod
    def from_code(code: int) -> "MessageType":
        """Return the `MessageType` for the numeric code.

        :param code: The numeric `messageType` code.
        :return: The matching enum member.
        :raises ValueError: If the code is not a known message type.
        """
        try:
            return MessageType(code)
        except ValueError as err:
            raise ValueError(f"Unknown SCEP messageType code: {code}") from err

    def is_request(self) -> bool:
        """Return `True` for all message types sent by a client."""
        return self is not MessageType.CERT_REP


class PkiStatus(enum.Enum):
    """The `pkiStatus` values of a `CertRep` message."""

    SUCCESS = 0
    FAILURE = 2
    PENDING = 3

    @staticmethod
    def from_code(code: int) -> "PkiStatus":
        """Return the `PkiStatus` for the numeric code."""
        try:
            return PkiStatus(code)
        except ValueError as err:
            raise ValueError(f"Unknown SCEP pkiStatus code: {code}") from err


class FailInfo(enum.Enum):
    """The `failInfo` values of a `CertRep` message with status `FAILURE`."""

    BAD_ALG = 0
    BAD_MESSAGE_CHECK = 1
    BAD_REQUEST = 2
    BAD_TIME = 3
    BAD_CERT_ID = 4

    @staticmethod
    def from_code(code: int) -> "FailInfo":
        """Return the `FailInfo` for the numeric code."""
        try:
            return FailInfo(code)
        except ValueError as err:
            raise ValueError(f"Unknown SCEP failInfo code: {code}") from err

    @staticmethod
    def from_name(name: str) -> "FailInfo":
        """Return the `FailInfo` for a protocol name like `badCertId` or `BAD_CERT_ID`.

        :param name: The name of the failure reason.
        :return: The matching enum member.
        :raises ValueError: If the name is unknown.
        """
        for member in FailInfo:
            if name in (member.name, member.protocol_name):
                return member
        raise ValueError(f"Unknown SCEP failInfo name: {name}")

    @property
    def protocol_name(self) -> str:
        """Return the camel case name used in RFC 8894, e.g. `badCertId`."""
        first, *rest = self.name.lower().split("_")
        return first + "".join(part.capitalize() for part in rest)

    @property
    def detail(self) -> str:
        """Return a human-readable description of the failure reason."""
        return _FAIL_INFO_DETAILS[self]


_FAIL_INFO_DETAILS = {
    FailInfo.BAD_ALG: "Unrecognized or unsupported algorithm.",
    FailInfo.BAD_MESSAGE_CHECK: "Integrity check (meaning signature verification of the CMS message) failed.",
    FailInfo.BAD_REQUEST: "Transaction not permitted or supported.",
    FailInfo.BAD_TIME: "The signingTime attribute from the CMS authenticatedAttributes "
    "was not sufficiently close to the system time.",
    FailInfo.BAD_CERT_ID: "No certificate could be identified matching the provided criteria.",
}


class Operation(enum.Enum):
    """The `operation` parameter of the SCEP HTTP binding."""

    GET_CA_CAPS = "GetCACaps"
    GET_CA_CERT = "GetCACert"
    GET_NEXT_CA_CERT = "GetNextCACert"
    PKI_OPERATION = "PKIOperation"


class VerificationOutcome(enum.Enum):
    """The result of the signature check of a SCEP `SignedData` structure."""

    VERIFIED = enum.auto()
    # The signer was identified, but no certificate was available to check the signature.
    UNVERIFIED_ACCEPTED = enum.auto()


class DecodeFailureKind(enum.Enum):
    """Discriminates the reasons a SCEP message could not be decoded."""

    SIGNER_NOT_FOUND = enum.auto()
    VERIFICATION_FAILURE = enum.auto()
    MALFORMED_ATTRIBUTE = enum.auto()
    UNSUPPORTED_MESSAGE_TYPE = enum.auto()
    UNSUPPORTED_PKI_STATUS = enum.auto()
    UNSUPPORTED_FAIL_INFO = enum.auto()
    CONTENT_DECODING_FAILURE = enum.auto()
    ENVELOPE_DECRYPTION_FAILURE = enum.auto()
