# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Object identifiers and lookup tables used by SCEP messages.

The SCEP attribute identifiers are defined in RFC 8894, Section 3.2.1. The algorithm
tables cover the algorithms a SCEP peer may use for the `SignedData` signature and
the `EnvelopedData` encryption.
"""

from pyasn1.type import univ
from pyasn1_modules import rfc5280, rfc5652

# SCEP authenticated attributes.
id_VeriSign = univ.ObjectIdentifier("2.16.840.1.113733")
id_pki = id_VeriSign + (1,)
id_attributes = id_pki + (9,)
id_messageType = id_attributes + (2,)
id_pkiStatus = id_attributes + (3,)
id_failInfo = id_attributes + (4,)
id_senderNonce = id_attributes + (5,)
id_recipientNonce = id_attributes + (6,)
id_transactionID = id_attributes + (7,)

SCEP_ATTR_OID_2_NAME = {
    id_messageType: "messageType",
    id_pkiStatus: "pkiStatus",
    id_failInfo: "failInfo",
    id_senderNonce: "senderNonce",
    id_recipientNonce: "recipientNonce",
    id_transactionID: "transactionID",
}

# Hash algorithms.
id_md5 = univ.ObjectIdentifier("1.2.840.113549.2.5")
id_sha1 = univ.ObjectIdentifier("1.3.14.3.2.26")
id_sha224 = univ.ObjectIdentifier("2.16.840.1.101.3.4.2.4")
id_sha256 = univ.ObjectIdentifier("2.16.840.1.101.3.4.2.1")
id_sha384 = univ.ObjectIdentifier("2.16.840.1.101.3.4.2.2")
id_sha512 = univ.ObjectIdentifier("2.16.840.1.101.3.4.2.3")

SHA_OID_2_NAME = {
    id_md5: "md5",
    id_sha1: "sha1",
    id_sha224: "sha224",
    id_sha256: "sha256",
    id_sha384: "sha384",
    id_sha512: "sha512",
}

# RSA.
pkcs_1 = univ.ObjectIdentifier("1.2.840.113549.1.1")
rsaEncryption = pkcs_1 + (1,)
md5WithRSAEncryption = pkcs_1 + (4,)
sha1WithRSAEncryption = pkcs_1 + (5,)
id_RSAES_OAEP = pkcs_1 + (7,)
id_mgf1 = pkcs_1 + (8,)
sha256WithRSAEncryption = pkcs_1 + (11,)
sha384WithRSAEncryption = pkcs_1 + (12,)
sha512WithRSAEncryption = pkcs_1 + (13,)
sha224WithRSAEncryption = pkcs_1 + (14,)

RSA_SHA_OID_2_NAME = {
    md5WithRSAEncryption: "rsa-md5",
    sha1WithRSAEncryption: "rsa-sha1",
    sha224WithRSAEncryption: "rsa-sha224",
    sha256WithRSAEncryption: "rsa-sha256",
    sha384WithRSAEncryption: "rsa-sha384",
    sha512WithRSAEncryption: "rsa-sha512",
}

# ECDSA and EdDSA.
ecdsa_with_SHA1 = univ.ObjectIdentifier("1.2.840.10045.4.1")
ecdsa_with_SHA224 = univ.ObjectIdentifier("1.2.840.10045.4.3.1")
ecdsa_with_SHA256 = univ.ObjectIdentifier("1.2.840.10045.4.3.2")
ecdsa_with_SHA384 = univ.ObjectIdentifier("1.2.840.10045.4.3.3")
ecdsa_with_SHA512 = univ.ObjectIdentifier("1.2.840.10045.4.3.4")
id_Ed25519 = univ.ObjectIdentifier("1.3.101.112")
id_Ed448 = univ.ObjectIdentifier("1.3.101.113")

ECDSA_SHA_OID_2_NAME = {
    ecdsa_with_SHA1: "ecdsa-sha1",
    ecdsa_with_SHA224: "ecdsa-sha224",
    ecdsa_with_SHA256: "ecdsa-sha256",
    ecdsa_with_SHA384: "ecdsa-sha384",
    ecdsa_with_SHA512: "ecdsa-sha512",
}

ED_OID_2_NAME = {id_Ed25519: "ed25519", id_Ed448: "ed448"}

# Signature algorithms which carry their hash algorithm in the name.
MSG_SIG_ALG = {**RSA_SHA_OID_2_NAME, **ECDSA_SHA_OID_2_NAME, **ED_OID_2_NAME}

# Key transport algorithms for the `KeyTransRecipientInfo`.
KM_KT_ALG = {rsaEncryption: "rsa", id_RSAES_OAEP: "rsaes-oaep"}

# Content encryption algorithms.
id_aes128_CBC = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.2")
id_aes192_CBC = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.22")
id_aes256_CBC = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.42")
des_EDE3_CBC = univ.ObjectIdentifier("1.2.840.113549.3.7")
desCBC = univ.ObjectIdentifier("1.3.14.3.2.7")

AES_CBC_OID_2_NAME = {
    id_aes128_CBC: "aes128_cbc",
    id_aes192_CBC: "aes192_cbc",
    id_aes256_CBC: "aes256_cbc",
}

CONTENT_ENC_ALG = {**AES_CBC_OID_2_NAME, des_EDE3_CBC: "des_ede3_cbc"}

CMS_OID_2_NAME = {
    rfc5652.id_data: "id-data",
    rfc5652.id_signedData: "id-signedData",
    rfc5652.id_envelopedData: "id-envelopedData",
    rfc5652.id_contentType: "id-contentType",
    rfc5652.id_messageDigest: "id-messageDigest",
    rfc5652.id_signingTime: "id-signingTime",
    rfc5280.id_ce_subjectKeyIdentifier: "subjectKeyIdentifier",
}

ALL_KNOWN_OIDS_2_NAME = {
    **SCEP_ATTR_OID_2_NAME,
    **SHA_OID_2_NAME,
    **MSG_SIG_ALG,
    **KM_KT_ALG,
    **CONTENT_ENC_ALG,
    desCBC: "des_cbc",
    id_mgf1: "mgf1",
    **CMS_OID_2_NAME,
}
