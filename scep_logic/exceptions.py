# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Contains Custom Exceptions for decoding SCEP messages."""

from typing import List, Optional, Union

from scep_logic.scep_enums import DecodeFailureKind


class ScepError(Exception):
    """Base class for SCEP errors."""

    failinfo: str = "badRequest"
    error_details: List[str]

    def __init__(
        self, message: str, error_details: Optional[Union[List[str], str]] = None, failinfo: Optional[str] = None
    ):
        """Initialize the exception with the message.

        :param message: The message to display.
        :param error_details: Additional details about the error.
        :param failinfo: The SCEP `failInfo` name a server would answer with. Defaults to the class value.
        """
        self.message = message
        self._failinfo = failinfo or self.failinfo
        if error_details is None:
            self.error_details = []
        elif isinstance(error_details, str):
            self.error_details = [error_details]
        else:
            self.error_details = list(error_details)
        super().__init__(message)

    def get_failinfo(self) -> str:
        """Return the failinfo."""
        return self._failinfo

    def get_error_details(self) -> List[str]:
        """Return the error details."""
        return self.error_details


class BadConfig(ScepError):
    """Raised when the configuration is invalid."""


class MessageEncodingError(ScepError):
    """Raised when an already built SCEP message cannot be DER-encoded for transport."""


#########################
# Decoding Errors
##########################


class MessageDecodingError(ScepError):
    """Base class for all reasons a SCEP `pkiMessage` could not be decoded.

    The `kind` attribute discriminates the reason, the original cause is chained
    as `__cause__`.
    """

    kind: DecodeFailureKind


class SignerNotFound(MessageDecodingError):
    """Raised when no `SignerInfo` matches the identity of the expected signer certificate."""

    kind = DecodeFailureKind.SIGNER_NOT_FOUND
    failinfo = "badCertId"


class VerificationFailure(MessageDecodingError):
    """Raised when the signature or the message digest of a `SignerInfo` is invalid."""

    kind = DecodeFailureKind.VERIFICATION_FAILURE
    failinfo = "badMessageCheck"


class UnverifiedSigner(VerificationFailure):
    """Raised when the signature cannot be checked and the policy rejects unverified messages."""


class MalformedAttribute(MessageDecodingError):
    """Raised when a SCEP authenticated attribute is missing, duplicated or incorrectly encoded."""

    kind = DecodeFailureKind.MALFORMED_ATTRIBUTE

    def __init__(self, attr_name: str, reason: str, error_details: Optional[Union[List[str], str]] = None):
        """Initialize the exception with the attribute name and the reason.

        :param attr_name: The name of the attribute, e.g. `messageType`.
        :param reason: Why the attribute is malformed.
        :param error_details: Additional details about the error.
        """
        self.attr_name = attr_name
        super().__init__(f"The `{attr_name}` attribute is malformed: {reason}", error_details=error_details)


class UnsupportedMessageType(MessageDecodingError):
    """Raised when the `messageType` code is outside the known set."""

    kind = DecodeFailureKind.UNSUPPORTED_MESSAGE_TYPE


class UnsupportedPkiStatus(MessageDecodingError):
    """Raised when the `pkiStatus` code of a `CertRep` is outside the known set."""

    kind = DecodeFailureKind.UNSUPPORTED_PKI_STATUS


class UnsupportedFailInfo(MessageDecodingError):
    """Raised when the `failInfo` code of a `CertRep` is outside the known set."""

    kind = DecodeFailureKind.UNSUPPORTED_FAIL_INFO


class ContentDecodingFailure(MessageDecodingError):
    """Raised when content does not parse as the structure expected for the message type."""

    kind = DecodeFailureKind.CONTENT_DECODING_FAILURE


# Not a SCEP failure reason on its own, but more precise for trailing data.
class BadAsn1Data(ContentDecodingFailure):
    """Raised when the ASN.1 data has a remainder or ASN.1 data is incorrectly populated."""

    def __init__(
        self,
        message: str,
        remainder: Optional[bytes] = None,
        overwrite: bool = False,
        error_details: Optional[Union[List[str], str]] = None,
    ):
        """Initialize the exception with the message.

        :param message: The message to display or just the structure name.
        :param remainder: The remainder of the ASN.1 data.
        :param overwrite: Raise the exception with the message only.
        """
        if overwrite:
            super().__init__(message=message, error_details=error_details)
        else:
            r = "" if remainder is None else remainder.hex()
            super().__init__(f"Decoding the `{message}` structure had a remainder: {r}.", error_details=error_details)


class EnvelopeDecryptionFailure(MessageDecodingError):
    """Raised when the `EnvelopedData` payload of a message could not be decrypted."""

    kind = DecodeFailureKind.ENVELOPE_DECRYPTION_FAILURE


class UnsupportedAlgorithm(EnvelopeDecryptionFailure):
    """Raised when a key transport or content encryption algorithm is not supported."""

    failinfo = "badAlg"
