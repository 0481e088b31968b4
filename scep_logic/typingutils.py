# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Type aliases to enhance code readability, maintainability, and type safety.

Type aliases are used to create descriptive names for commonly used types, making the codebase
easier to understand and work with.
"""

from typing import Union

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.ec import EllipticCurvePrivateKey, EllipticCurvePublicKey
from cryptography.hazmat.primitives.asymmetric.ed448 import Ed448PrivateKey, Ed448PublicKey
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from pyasn1_modules import rfc5280, rfc5652

SignKey = Union[RSAPrivateKey, EllipticCurvePrivateKey, Ed25519PrivateKey, Ed448PrivateKey]

# Keys which can verify the signature of a SCEP `SignedData` structure.
VerifyKey = Union[RSAPublicKey, EllipticCurvePublicKey, Ed25519PublicKey, Ed448PublicKey]

# SCEP only defines key transport for the `EnvelopedData`, so the recipient must hold an RSA key.
DecryptKey = RSAPrivateKey

# A certificate is accepted either as pyasn1 structure, as `cryptography` object or DER-encoded.
CertType = Union[rfc5280.Certificate, x509.Certificate, bytes]

# The input of the decoder: a parsed `SignedData`, its `ContentInfo` wrapper or the DER-encoded `ContentInfo`.
SignedMessageInput = Union[rfc5652.SignedData, rfc5652.ContentInfo, bytes]
