# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""The typed SCEP `pkiMessage` variants produced by the `PkiMessageDecoder`.

Every variant shares the transaction ID, the sender nonce and the outcome of the signature check.
The payload (`message_data`) depends on the message type:

- `EnrollmentRequest` (PKCSReq): a PKCS#10 `CertificationRequest`.
- `PollRequest` (CertPoll/GetCertInitial): an `IssuerAndSubject`.
- `CertificateQuery` (GetCert): an `IssuerAndSerialNumber`.
- `CrlRequest` (GetCRL): an `IssuerAndSerialNumber`.
- `CertificateResponse` (CertRep): a degenerate `SignedData` with the issued certificates, only for `SUCCESS`.
"""

from dataclasses import dataclass
from typing import ClassVar, List, Optional

from cryptography import x509
from pyasn1_modules import rfc2986, rfc5280, rfc5652

from scep_logic.asn1_structures import IssuerAndSubject
from scep_logic.asn1utils import encode_to_der
from scep_logic.certextractutils import get_certificates_from_signed_data, get_crls_from_signed_data
from scep_logic.data_objects import Nonce, TransactionId
from scep_logic.scep_enums import FailInfo, MessageType, PkiStatus, VerificationOutcome


@dataclass(frozen=True)
class PkiMessage:
    """Base class of all decoded SCEP messages.

    Attributes:
        transaction_id: The `transactionID` attribute.
        sender_nonce: The `senderNonce` attribute, empty if the peer omitted it.
        verification: Whether the signature was verified or the message was accepted unverified.

    """

    message_type: ClassVar[MessageType]

    transaction_id: TransactionId
    sender_nonce: Nonce
    verification: VerificationOutcome

    @property
    def is_verified(self) -> bool:
        """Return `True` if the signature of the message was checked."""
        return self.verification is VerificationOutcome.VERIFIED

    def __str__(self) -> str:
        return (
            f"{type(self).__name__}(message_type={self.message_type.name}, "
            f"transaction_id={self.transaction_id}, sender_nonce={self.sender_nonce}, "
            f"verification={self.verification.name})"
        )


@dataclass(frozen=True)
class EnrollmentRequest(PkiMessage):
    """A `PKCSReq` message carrying the certification request of the client."""

    message_type: ClassVar[MessageType] = MessageType.PKCS_REQ

    message_data: rfc2986.CertificationRequest


@dataclass(frozen=True)
class PollRequest(PkiMessage):
    """A `CertPoll` (`GetCertInitial`) message asking for the outcome of a pending request."""

    message_type: ClassVar[MessageType] = MessageType.GET_CERT_INITIAL

    message_data: IssuerAndSubject


@dataclass(frozen=True)
class CertificateQuery(PkiMessage):
    """A `GetCert` message asking for a certificate by issuer and serial number."""

    message_type: ClassVar[MessageType] = MessageType.GET_CERT

    message_data: rfc5652.IssuerAndSerialNumber


@dataclass(frozen=True)
class CrlRequest(PkiMessage):
    """A `GetCRL` message asking for the CRL covering a certificate."""

    message_type: ClassVar[MessageType] = MessageType.GET_CRL

    message_data: rfc5652.IssuerAndSerialNumber


@dataclass(frozen=True)
class CertificateResponse(PkiMessage):
    """A `CertRep` message, the answer of the CA to every request.

    Exactly one of the following holds:
        - `SUCCESS`: `message_data` is the degenerate `SignedData` and `fail_info` is `None`.
        - `FAILURE`: `fail_info` is set and `message_data` is `None`.
        - `PENDING`: neither is set.

    Attributes:
        recipient_nonce: The `recipientNonce` attribute, echoing the nonce of the request.
        pki_status: The `pkiStatus` attribute.
        message_data: The nested `SignedData` with the issued certificates or the CRL.
        fail_info: The `failInfo` attribute.

    """

    message_type: ClassVar[MessageType] = MessageType.CERT_REP

    recipient_nonce: Nonce
    pki_status: PkiStatus
    message_data: Optional[rfc5652.SignedData] = None
    fail_info: Optional[FailInfo] = None

    def __post_init__(self):
        """Check that the payload and the failure reason match the status.

        :raises ValueError: If the fields are inconsistent with `pki_status`.
        """
        has_data = self.message_data is not None
        has_fail_info = self.fail_info is not None

        if self.pki_status is PkiStatus.SUCCESS and (not has_data or has_fail_info):
            raise ValueError("A `SUCCESS` response must carry the message data and no `failInfo`.")
        if self.pki_status is PkiStatus.FAILURE and (has_data or not has_fail_info):
            raise ValueError("A `FAILURE` response must carry a `failInfo` and no message data.")
        if self.pki_status is PkiStatus.PENDING and (has_data or has_fail_info):
            raise ValueError("A `PENDING` response must carry neither message data nor a `failInfo`.")

    @classmethod
    def success(
        cls,
        transaction_id: TransactionId,
        sender_nonce: Nonce,
        recipient_nonce: Nonce,
        message_data: rfc5652.SignedData,
        verification: VerificationOutcome = VerificationOutcome.VERIFIED,
    ) -> "CertificateResponse":
        """Create a `SUCCESS` response carrying the degenerate `SignedData`."""
        return cls(
            transaction_id=transaction_id,
            sender_nonce=sender_nonce,
            verification=verification,
            recipient_nonce=recipient_nonce,
            pki_status=PkiStatus.SUCCESS,
            message_data=message_data,
        )

    @classmethod
    def failure(
        cls,
        transaction_id: TransactionId,
        sender_nonce: Nonce,
        recipient_nonce: Nonce,
        fail_info: FailInfo,
        verification: VerificationOutcome = VerificationOutcome.VERIFIED,
    ) -> "CertificateResponse":
        """Create a `FAILURE` response with the failure reason."""
        return cls(
            transaction_id=transaction_id,
            sender_nonce=sender_nonce,
            verification=verification,
            recipient_nonce=recipient_nonce,
            pki_status=PkiStatus.FAILURE,
            fail_info=fail_info,
        )

    @classmethod
    def pending(
        cls,
        transaction_id: TransactionId,
        sender_nonce: Nonce,
        recipient_nonce: Nonce,
        verification: VerificationOutcome = VerificationOutcome.VERIFIED,
    ) -> "CertificateResponse":
        """Create a `PENDING` response."""
        return cls(
            transaction_id=transaction_id,
            sender_nonce=sender_nonce,
            verification=verification,
            recipient_nonce=recipient_nonce,
            pki_status=PkiStatus.PENDING,
        )

    def is_success(self) -> bool:
        """Return `True` if the request was granted."""
        return self.pki_status is PkiStatus.SUCCESS

    def is_failure(self) -> bool:
        """Return `True` if the request was rejected."""
        return self.pki_status is PkiStatus.FAILURE

    def is_pending(self) -> bool:
        """Return `True` if the request awaits manual approval."""
        return self.pki_status is PkiStatus.PENDING

    def _get_signed_data(self) -> rfc5652.SignedData:
        if self.message_data is None:
            raise ValueError(f"A `{self.pki_status.name}` response does not carry certificates or CRLs.")
        return self.message_data

    def get_certificates(self) -> List[rfc5280.Certificate]:
        """Return the certificates of a `SUCCESS` response.

        :return: The issued certificate and, if sent, its chain.
        :raises ValueError: If the response is not a `SUCCESS` response.
        """
        return get_certificates_from_signed_data(self._get_signed_data())

    def get_x509_certificates(self) -> List[x509.Certificate]:
        """Return the certificates of a `SUCCESS` response as `cryptography` objects."""
        return [x509.load_der_x509_certificate(encode_to_der(cert)) for cert in self.get_certificates()]

    def get_crls(self) -> List[rfc5280.CertificateList]:
        """Return the CRLs of a `SUCCESS` response to a `GetCRL` request.

        :raises ValueError: If the response is not a `SUCCESS` response.
        """
        return get_crls_from_signed_data(self._get_signed_data())

    def __str__(self) -> str:
        text = (
            f"CertificateResponse(transaction_id={self.transaction_id}, sender_nonce={self.sender_nonce}, "
            f"recipient_nonce={self.recipient_nonce}, pki_status={self.pki_status.name}"
        )
        if self.fail_info is not None:
            text += f", fail_info={self.fail_info.protocol_name} ({self.fail_info.detail})"
        return text + f", verification={self.verification.name})"
