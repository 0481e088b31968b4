# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0
# type: ignore
"""Defines ASN.1 structures used by SCEP which are not part of `pyasn1-modules`."""

from pyasn1.type import namedtype, univ
from pyasn1_modules import rfc5280


class IssuerAndSubject(univ.Sequence):
    """Defines the ASN.1 structure for the `IssuerAndSubject` of a `CertPoll` (`GetCertInitial`) message.

    IssuerAndSubject ::= SEQUENCE {
        issuer     Name,
        subject    Name
    }
    """

    componentType = namedtype.NamedTypes(
        namedtype.NamedType("issuer", rfc5280.Name()),
        namedtype.NamedType("subject", rfc5280.Name()),
    )
