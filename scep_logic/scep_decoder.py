# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Decode a SCEP `pkiMessage` into one of the typed `PkiMessage` variants.

The decoder authenticates the outer `SignedData`, extracts the SCEP attributes of the signer,
and, depending on the message type and status, decrypts the `EnvelopedData` payload and parses
it into the structure of the message type.
"""

import logging
from typing import Callable, Dict, Optional

from pyasn1_modules import rfc2986, rfc5652

from scep_logic import certutils
from scep_logic.asn1_structures import IssuerAndSubject
from scep_logic.asn1utils import decode_der_strict, log_asn1, parse_enveloped_data, parse_signed_data
from scep_logic.attributeutils import ScepAttributeTable
from scep_logic.config_vars import DecoderConfig
from scep_logic.data_objects import Nonce, TransactionId
from scep_logic.envdatautils import EnvelopeDecryptor
from scep_logic.exceptions import ContentDecodingFailure, EnvelopeDecryptionFailure, UnsupportedMessageType
from scep_logic.scep_enums import MessageType, PkiStatus, VerificationOutcome
from scep_logic.scep_messages import (
    CertificateQuery,
    CertificateResponse,
    CrlRequest,
    EnrollmentRequest,
    PkiMessage,
    PollRequest,
)
from scep_logic.typingutils import CertType, SignedMessageInput
from scep_logic.verifyingutils import get_encap_content, verify_signed_data

# The message class and the structure of the decrypted payload for every request type.
REQUEST_PAYLOADS = {
    MessageType.PKCS_REQ: (EnrollmentRequest, rfc2986.CertificationRequest),
    MessageType.GET_CERT_INITIAL: (PollRequest, IssuerAndSubject),
    MessageType.GET_CERT: (CertificateQuery, rfc5652.IssuerAndSerialNumber),
    MessageType.GET_CRL: (CrlRequest, rfc5652.IssuerAndSerialNumber),
}


class PkiMessageDecoder:
    """Decodes SCEP `pkiMessage` structures sent by one expected signer.

    Attributes:
        signer_cert: The certificate expected to identify the signer.
        decryptor: Recovers the plaintext of the `EnvelopedData` payload.
        config: The configuration of the signature check.

    """

    def __init__(
        self, signer_cert: CertType, decryptor: EnvelopeDecryptor, config: Optional[DecoderConfig] = None
    ):
        """Initialize the decoder.

        :param signer_cert: The certificate expected to identify the signer, as pyasn1, `cryptography` or DER.
        :param decryptor: The decryptor for the `EnvelopedData` payload.
        :param config: The configuration of the signature check. Defaults to `DecoderConfig()`.
        """
        self.signer_cert = certutils.ensure_asn1_certificate(signer_cert)
        self.decryptor = decryptor
        self.config = config or DecoderConfig()
        self._handlers: Dict[MessageType, Callable[..., PkiMessage]] = {
            MessageType.CERT_REP: self._decode_cert_rep,
            MessageType.PKCS_REQ: self._decode_request,
            MessageType.GET_CERT_INITIAL: self._decode_request,
            MessageType.GET_CERT: self._decode_request,
            MessageType.GET_CRL: self._decode_request,
        }

    def decode(self, data: SignedMessageInput) -> PkiMessage:
        """Decode a SCEP `pkiMessage`.

        :param data: The `SignedData` structure, its `ContentInfo` or the DER-encoded `ContentInfo`.
        :return: The decoded message.
        :raises SignerNotFound: If no `SignerInfo` matches the expected signer certificate.
        :raises VerificationFailure: If the signature is invalid or unverified messages are rejected.
        :raises MalformedAttribute: If a mandatory attribute is missing or incorrectly encoded.
        :raises UnsupportedMessageType: If the message type is unknown.
        :raises UnsupportedPkiStatus: If the status of a `CertRep` is unknown.
        :raises UnsupportedFailInfo: If the failure reason of a `CertRep` is unknown.
        :raises ContentDecodingFailure: If the content is not the structure the message type expects.
        :raises EnvelopeDecryptionFailure: If the payload could not be decrypted.
        """
        signed_data = parse_signed_data(data)
        signer_info, verification = verify_signed_data(signed_data, self.signer_cert, self.config)

        attributes = ScepAttributeTable.from_signed_attrs(signer_info["signedAttrs"])
        message_type = attributes.get_message_type()
        sender_nonce = attributes.get_sender_nonce()
        transaction_id = attributes.get_transaction_id()

        handler = self._handlers.get(message_type)
        if handler is None:
            raise UnsupportedMessageType(f"No decoder for the message type: {message_type.name}")

        message = handler(
            message_type=message_type,
            signed_data=signed_data,
            attributes=attributes,
            transaction_id=transaction_id,
            sender_nonce=sender_nonce,
            verification=verification,
        )
        logging.debug("Decoded the SCEP message: %s", message)
        return message

    def _decrypt_content(self, signed_data: rfc5652.SignedData) -> bytes:
        """Decrypt the `EnvelopedData` carried as `eContent` of the `SignedData` structure."""
        e_content = get_encap_content(signed_data)
        if not e_content:
            raise ContentDecodingFailure("The `SignedData` structure does not contain the `EnvelopedData` payload.")

        enveloped_data = parse_enveloped_data(e_content)
        try:
            return self.decryptor.decrypt(enveloped_data)
        except EnvelopeDecryptionFailure:
            raise
        except Exception as err:
            raise EnvelopeDecryptionFailure(f"The decryptor failed: {err}") from err

    def _decode_cert_rep(
        self,
        message_type: MessageType,
        signed_data: rfc5652.SignedData,
        attributes: ScepAttributeTable,
        transaction_id: TransactionId,
        sender_nonce: Nonce,
        verification: VerificationOutcome,
    ) -> CertificateResponse:
        """Decode a `CertRep` message. Only a `SUCCESS` response carries an encrypted payload."""
        pki_status = attributes.get_pki_status()
        recipient_nonce = attributes.get_recipient_nonce()

        if pki_status is PkiStatus.FAILURE:
            return CertificateResponse.failure(
                transaction_id, sender_nonce, recipient_nonce, attributes.get_fail_info(), verification
            )

        if pki_status is PkiStatus.PENDING:
            return CertificateResponse.pending(transaction_id, sender_nonce, recipient_nonce, verification)

        plaintext = self._decrypt_content(signed_data)
        nested = parse_signed_data(plaintext)
        log_asn1(nested)
        return CertificateResponse.success(transaction_id, sender_nonce, recipient_nonce, nested, verification)

    def _decode_request(
        self,
        message_type: MessageType,
        signed_data: rfc5652.SignedData,
        attributes: ScepAttributeTable,
        transaction_id: TransactionId,
        sender_nonce: Nonce,
        verification: VerificationOutcome,
    ) -> PkiMessage:
        """Decode a request message, whose payload structure depends on the message type."""
        message_cls, asn1_spec = REQUEST_PAYLOADS[message_type]
        plaintext = self._decrypt_content(signed_data)
        message_data = decode_der_strict(plaintext, asn1_spec())
        log_asn1(message_data)
        return message_cls(
            transaction_id=transaction_id,
            sender_nonce=sender_nonce,
            verification=verification,
            message_data=message_data,
        )


def decode_pki_message(
    data: SignedMessageInput,
    signer_cert: CertType,
    decryptor: EnvelopeDecryptor,
    config: Optional[DecoderConfig] = None,
) -> PkiMessage:
    """Decode a SCEP `pkiMessage` sent by the expected signer.

    :param data: The `SignedData` structure, its `ContentInfo` or the DER-encoded `ContentInfo`.
    :param signer_cert: The certificate expected to identify the signer.
    :param decryptor: The decryptor for the `EnvelopedData` payload.
    :param config: The configuration of the signature check. Defaults to `DecoderConfig()`.
    :return: The decoded message.
    """
    return PkiMessageDecoder(signer_cert, decryptor, config).decode(data)
