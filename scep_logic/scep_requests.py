# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""The requests of the SCEP HTTP binding, as `operation` and `message` pairs.

A `PkiOperationRequest` transports an already built and signed `pkiMessage` (`PKCSReq`,
`CertPoll`, `GetCert` or `GetCRL`). The other requests query the CA and carry at most
an identifier of the CA.
"""

import abc
import base64
from typing import Dict, Optional, Union

from pyasn1.error import PyAsn1Error
from pyasn1_modules import rfc5652

from scep_logic.asn1utils import decode_der_strict, encode_to_der, wrap_in_content_info
from scep_logic.exceptions import BadAsn1Data, MessageEncodingError
from scep_logic.scep_enums import Operation


class Request(abc.ABC):
    """Base class of all SCEP requests."""

    operation: Operation

    def get_operation(self) -> Operation:
        """Return the `operation` parameter of the request."""
        return self.operation

    @abc.abstractmethod
    def get_message(self) -> str:
        """Return the `message` parameter of the request."""

    def to_query_params(self) -> Dict[str, str]:
        """Return the query parameters for the HTTP GET binding.

        The `message` parameter is omitted, if the request has none.
        """
        params = {"operation": self.get_operation().value}
        message = self.get_message()
        if message:
            params["message"] = message
        return params


class PkiOperationRequest(Request):
    """Transports a signed SCEP `pkiMessage`.

    Attributes:
        content_info: The `ContentInfo` wrapping the `SignedData` of the message.

    """

    operation = Operation.PKI_OPERATION

    def __init__(self, message: Union[rfc5652.ContentInfo, rfc5652.SignedData, bytes]):
        """Initialize the request.

        :param message: The signed message as `ContentInfo`, `SignedData` or DER-encoded `ContentInfo`.
        :raises MessageEncodingError: If the bytes are not a DER-encoded `ContentInfo`.
        """
        if isinstance(message, rfc5652.SignedData):
            message = wrap_in_content_info(message, rfc5652.id_signedData)
        elif isinstance(message, bytes):
            try:
                message = decode_der_strict(message, rfc5652.ContentInfo())
            except BadAsn1Data as err:
                raise MessageEncodingError("The message is not a DER-encoded `ContentInfo`.") from err

        self.content_info = message

    def get_der(self) -> bytes:
        """Return the DER encoding of the message.

        :raises MessageEncodingError: If the message cannot be encoded.
        """
        try:
            return encode_to_der(self.content_info)
        except PyAsn1Error as err:
            raise MessageEncodingError(f"Could not encode the `pkiMessage`: {err}") from err

    def get_message(self) -> str:
        """Return the base64 encoding of the DER-encoded `ContentInfo`."""
        return base64.b64encode(self.get_der()).decode("ascii")

    def __str__(self) -> str:
        return self.content_info.prettyPrint()


class _CaQueryRequest(Request):
    """A request without signed payload, optionally naming the CA."""

    def __init__(self, ca_identifier: Optional[str] = None):
        """Initialize the request.

        :param ca_identifier: The identifier of the CA, if the server hosts more than one. Defaults to `None`.
        """
        self.ca_identifier = ca_identifier

    def get_message(self) -> str:
        """Return the CA identifier or an empty string."""
        return self.ca_identifier or ""

    def __str__(self) -> str:
        return f"{self.operation.value}(ca_identifier={self.ca_identifier})"


class GetCaCapsRequest(_CaQueryRequest):
    """Asks the CA for the capabilities it supports."""

    operation = Operation.GET_CA_CAPS


class GetCaCertRequest(_CaQueryRequest):
    """Asks for the CA certificate (and the RA certificates, if used)."""

    operation = Operation.GET_CA_CERT


class GetNextCaCertRequest(_CaQueryRequest):
    """Asks for the rollover certificate of the CA."""

    operation = Operation.GET_NEXT_CA_CERT
