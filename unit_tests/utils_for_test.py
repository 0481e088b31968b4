# SPDX-FileCopyrightText: Copyright 2024 Siemens AG
#
# SPDX-License-Identifier: Apache-2.0

"""Help Utility to build SCEP message structures for the unittests and debugging.

Everything is built in memory: keys, certificates, certification requests, `EnvelopedData`
payloads and signed SCEP `pkiMessage` structures.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.x509.oid import NameOID
from pyasn1.codec.der import encoder
from pyasn1.type import char, tag, univ
from pyasn1_modules import rfc2986, rfc4055, rfc5280, rfc5652

from scep_logic.asn1_structures import IssuerAndSubject
from scep_logic.asn1utils import decode_der_strict, encode_to_der, wrap_in_content_info
from scep_logic.certextractutils import get_subject_key_identifier
from scep_logic.certutils import parse_certificate
from scep_logic.cryptoutils import compute_aes_cbc, compute_des_ede3_cbc
from scep_logic.oid_mapping import compute_hash, hash_name_to_instance
from scep_logic.oidutils import (
    AES_CBC_OID_2_NAME,
    des_EDE3_CBC,
    ecdsa_with_SHA256,
    id_Ed25519,
    id_failInfo,
    id_messageType,
    id_mgf1,
    id_pkiStatus,
    id_recipientNonce,
    id_RSAES_OAEP,
    id_senderNonce,
    id_sha256,
    id_transactionID,
    rsaEncryption,
    sha256WithRSAEncryption,
)
from scep_logic.scep_enums import FailInfo, MessageType, PkiStatus
from scep_logic.typingutils import SignKey

HASH_NAME_2_OID = {
    "sha1": univ.ObjectIdentifier("1.3.14.3.2.26"),
    "sha256": id_sha256,
    "sha384": univ.ObjectIdentifier("2.16.840.1.101.3.4.2.2"),
    "sha512": univ.ObjectIdentifier("2.16.840.1.101.3.4.2.3"),
}

AES_NAME_2_OID = {name: oid for oid, name in AES_CBC_OID_2_NAME.items()}


def generate_rsa_key(key_size: int = 2048) -> rsa.RSAPrivateKey:
    """Generate an RSA private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def _parse_name(common_name: str) -> x509.Name:
    """Parse a name like "CN=test" into a `cryptography` name."""
    value = common_name.split("=", 1)[1] if "=" in common_name else common_name
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, value)])


def _get_sign_hash(key: SignKey) -> Optional[hashes.HashAlgorithm]:
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return None
    return hashes.SHA256()


def build_certificate(
    private_key: SignKey,
    common_name: str = "CN=Hans the Tester",
    issuer_key: Optional[SignKey] = None,
    issuer_cert: Optional[x509.Certificate] = None,
    include_ski: bool = True,
    serial_number: Optional[int] = None,
) -> x509.Certificate:
    """Build a certificate, self-signed unless an issuer is given.

    :param private_key: The key of the subject.
    :param common_name: The subject name, e.g. "CN=test".
    :param issuer_key: The key of the issuer. Defaults to the subject key.
    :param issuer_cert: The certificate of the issuer. Defaults to a self-signed certificate.
    :param include_ski: Whether to add the SubjectKeyIdentifier extension. Defaults to `True`.
    :param serial_number: The serial number. Defaults to a random one.
    :return: The `cryptography` certificate.
    """
    subject = _parse_name(common_name)
    issuer = subject if issuer_cert is None else issuer_cert.subject
    signing_key = issuer_key or private_key
    now = datetime.now(timezone.utc)

    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(serial_number or x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=30))
    )
    if include_ski:
        builder = builder.add_extension(
            x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()), critical=False
        )
    return builder.sign(signing_key, _get_sign_hash(signing_key))


def to_asn1_cert(cert: x509.Certificate) -> rfc5280.Certificate:
    """Convert a `cryptography` certificate into a pyasn1 certificate."""
    return parse_certificate(cert.public_bytes(serialization.Encoding.DER))


def build_csr(private_key: SignKey, common_name: str = "CN=test") -> bytes:
    """Build a DER-encoded PKCS#10 certification request."""
    csr = x509.CertificateSigningRequestBuilder().subject_name(_parse_name(common_name))
    csr = csr.sign(private_key, _get_sign_hash(private_key))
    return csr.public_bytes(serialization.Encoding.DER)


def build_crl(ca_key: SignKey, ca_cert: x509.Certificate, revoked_serial: int = 1234) -> rfc5280.CertificateList:
    """Build a CRL revoking a single serial number."""
    now = datetime.now(timezone.utc)
    revoked = (
        x509.RevokedCertificateBuilder().serial_number(revoked_serial).revocation_date(now - timedelta(hours=1)).build()
    )
    crl = (
        x509.CertificateRevocationListBuilder()
        .issuer_name(ca_cert.subject)
        .last_update(now - timedelta(hours=1))
        .next_update(now + timedelta(days=1))
        .add_revoked_certificate(revoked)
        .sign(ca_key, _get_sign_hash(ca_key))
    )
    return decode_der_strict(crl.public_bytes(serialization.Encoding.DER), rfc5280.CertificateList())


def prepare_issuer_and_serial_number(cert: rfc5280.Certificate) -> rfc5652.IssuerAndSerialNumber:
    """Create the `IssuerAndSerialNumber` structure of a certificate."""
    iss_ser = rfc5652.IssuerAndSerialNumber()
    iss_ser["issuer"] = cert["tbsCertificate"]["issuer"]
    iss_ser["serialNumber"] = int(cert["tbsCertificate"]["serialNumber"])
    return iss_ser


def prepare_issuer_and_subject(cert: rfc5280.Certificate) -> IssuerAndSubject:
    """Create the `IssuerAndSubject` structure of a certificate."""
    iss_sub = IssuerAndSubject()
    iss_sub["issuer"] = cert["tbsCertificate"]["issuer"]
    iss_sub["subject"] = cert["tbsCertificate"]["subject"]
    return iss_sub


def prepare_signer_identifier(cert: rfc5280.Certificate, use_ski: bool = False) -> rfc5652.SignerIdentifier:
    """Create a `SignerIdentifier`, by `subjectKeyIdentifier` or by `issuerAndSerialNumber`."""
    sid = rfc5652.SignerIdentifier()
    if use_ski:
        ski = get_subject_key_identifier(cert)
        sid["subjectKeyIdentifier"] = rfc5652.SubjectKeyIdentifier(ski).subtype(
            implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 0)
        )
    else:
        sid["issuerAndSerialNumber"] = prepare_issuer_and_serial_number(cert)
    return sid


def prepare_recipient_identifier(cert: rfc5280.Certificate, use_ski: bool = False) -> rfc5652.RecipientIdentifier:
    """Create a `RecipientIdentifier`, by `subjectKeyIdentifier` or by `issuerAndSerialNumber`."""
    rid = rfc5652.RecipientIdentifier()
    if use_ski:
        ski = get_subject_key_identifier(cert)
        rid["subjectKeyIdentifier"] = rfc5652.SubjectKeyIdentifier(ski).subtype(
            implicitTag=tag.Tag(tag.tagClassContext, tag.tagFormatSimple, 0)
        )
    else:
        rid["issuerAndSerialNumber"] = prepare_issuer_and_serial_number(cert)
    return rid


def _prepare_oaep_params(hash_alg: str) -> bytes:
    """Create the DER-encoded `RSAES-OAEP-params` using the same hash algorithm for MGF1."""
    params = rfc4055.RSAES_OAEP_params()
    params["hashFunc"]["algorithm"] = HASH_NAME_2_OID[hash_alg]
    params["maskGenFunc"]["algorithm"] = id_mgf1

    mgf_hash = rfc5280.AlgorithmIdentifier()
    mgf_hash["algorithm"] = HASH_NAME_2_OID[hash_alg]
    params["maskGenFunc"]["parameters"] = encoder.encode(mgf_hash)
    return encoder.encode(params)


def prepare_ktri(
    recipient_cert: x509.Certificate,
    cek: bytes,
    use_oaep: bool = False,
    oaep_hash_alg: Optional[str] = None,
    use_ski: bool = False,
) -> rfc5652.RecipientInfo:
    """Prepare a `KeyTransRecipientInfo` wrapped in a `RecipientInfo`.

    :param recipient_cert: The certificate of the recipient.
    :param cek: The content-encryption key to transport.
    :param use_oaep: Whether to use RSAES-OAEP instead of PKCS#1 v1.5. Defaults to `False`.
    :param oaep_hash_alg: The OAEP hash algorithm. `None` omits the parameters (SHA-1).
    :param use_ski: Whether to identify the recipient by its SubjectKeyIdentifier. Defaults to `False`.
    :return: The populated `RecipientInfo`.
    """
    public_key = recipient_cert.public_key()
    asn1_cert = to_asn1_cert(recipient_cert)

    ktri = rfc5652.KeyTransRecipientInfo()
    ktri["version"] = 2 if use_ski else 0
    ktri["rid"] = prepare_recipient_identifier(asn1_cert, use_ski=use_ski)

    if use_oaep:
        hash_instance = hash_name_to_instance(oaep_hash_alg or "sha1")
        oaep = padding.OAEP(mgf=padding.MGF1(hash_instance), algorithm=hash_instance, label=None)
        ktri["keyEncryptionAlgorithm"]["algorithm"] = id_RSAES_OAEP
        if oaep_hash_alg is not None:
            ktri["keyEncryptionAlgorithm"]["parameters"] = _prepare_oaep_params(oaep_hash_alg)
        ktri["encryptedKey"] = public_key.encrypt(cek, oaep)
    else:
        ktri["keyEncryptionAlgorithm"]["algorithm"] = rsaEncryption
        ktri["keyEncryptionAlgorithm"]["parameters"] = encoder.encode(univ.Null(""))
        ktri["encryptedKey"] = public_key.encrypt(cek, padding.PKCS1v15())

    recip_info = rfc5652.RecipientInfo()
    recip_info["ktri"] = ktri
    return recip_info


def prepare_enveloped_data(
    content: bytes,
    recipient_cert: x509.Certificate,
    content_enc_alg: str = "aes128_cbc",
    use_oaep: bool = False,
    oaep_hash_alg: Optional[str] = None,
    use_ski: bool = False,
    content_enc_oid: Optional[univ.ObjectIdentifier] = None,
) -> bytes:
    """Encrypt the content for the recipient and return the DER-encoded `ContentInfo(EnvelopedData)`.

    :param content: The plaintext, e.g. a DER-encoded certification request.
    :param recipient_cert: The certificate of the recipient.
    :param content_enc_alg: "aes128_cbc", "aes192_cbc", "aes256_cbc" or "des_ede3_cbc".
    :param use_oaep: Whether to use RSAES-OAEP for the key transport. Defaults to `False`.
    :param oaep_hash_alg: The OAEP hash algorithm. Defaults to `None` (parameters absent).
    :param use_ski: Whether to identify the recipient by its SubjectKeyIdentifier. Defaults to `False`.
    :param content_enc_oid: Overrides the content encryption OID, for negative testing.
    :return: The DER-encoded `ContentInfo`.
    """
    if content_enc_alg == "des_ede3_cbc":
        cek, iv = os.urandom(24), os.urandom(8)
        encrypted_content = compute_des_ede3_cbc(key=cek, data=content, iv=iv, decrypt=False)
        oid = des_EDE3_CBC
    else:
        key_size = int(content_enc_alg.replace("_cbc", "").replace("aes", "")) // 8
        cek, iv = os.urandom(key_size), os.urandom(16)
        encrypted_content = compute_aes_cbc(key=cek, data=content, iv=iv, decrypt=False)
        oid = AES_NAME_2_OID[content_enc_alg]

    enc_content_info = rfc5652.EncryptedContentInfo()
    enc_content_info["contentType"] = rfc5652.id_data
    enc_content_info["contentEncryptionAlgorithm"]["algorithm"] = content_enc_oid or oid
    enc_content_info["contentEncryptionAlgorithm"]["parameters"] = encoder.encode(univ.OctetString(iv))
    enc_content_info["encryptedContent"] = encrypted_content

    enveloped_data = rfc5652.EnvelopedData()
    enveloped_data["version"] = 2 if use_ski else 0
    enveloped_data["recipientInfos"].append(
        prepare_ktri(recipient_cert, cek, use_oaep=use_oaep, oaep_hash_alg=oaep_hash_alg, use_ski=use_ski)
    )
    enveloped_data["encryptedContentInfo"] = enc_content_info
    return encode_to_der(wrap_in_content_info(enveloped_data, rfc5652.id_envelopedData))


def prepare_attribute(oid: univ.ObjectIdentifier, values: Sequence) -> rfc5652.Attribute:
    """Create an `Attribute` with the given pyasn1 values."""
    attr = rfc5652.Attribute()
    attr["attrType"] = oid
    for value in values:
        attr["attrValues"].append(encoder.encode(value))
    return attr


def prepare_printable_attribute(oid: univ.ObjectIdentifier, *values: str) -> rfc5652.Attribute:
    """Create an `Attribute` with `PrintableString` values."""
    return prepare_attribute(oid, [char.PrintableString(value) for value in values])


def prepare_nonce_attribute(oid: univ.ObjectIdentifier, *values: bytes) -> rfc5652.Attribute:
    """Create an `Attribute` with `OCTET STRING` values."""
    return prepare_attribute(oid, [univ.OctetString(value) for value in values])


def prepare_scep_attributes(
    message_type: Union[MessageType, int, str] = MessageType.PKCS_REQ,
    transaction_id: Optional[str] = "T1",
    sender_nonce: Optional[bytes] = b"N1",
    recipient_nonce: Optional[bytes] = None,
    pki_status: Optional[Union[PkiStatus, int]] = None,
    fail_info: Optional[Union[FailInfo, int]] = None,
) -> List[rfc5652.Attribute]:
    """Create the SCEP authenticated attributes. `None` omits an attribute.

    Enumeration values may be given as enum member, integer code or raw string.
    """

    def _code(value) -> str:
        if isinstance(value, (MessageType, PkiStatus, FailInfo)):
            return str(value.value)
        return str(value)

    attrs = []
    if message_type is not None:
        attrs.append(prepare_printable_attribute(id_messageType, _code(message_type)))
    if transaction_id is not None:
        attrs.append(prepare_printable_attribute(id_transactionID, transaction_id))
    if sender_nonce is not None:
        attrs.append(prepare_nonce_attribute(id_senderNonce, sender_nonce))
    if recipient_nonce is not None:
        attrs.append(prepare_nonce_attribute(id_recipientNonce, recipient_nonce))
    if pki_status is not None:
        attrs.append(prepare_printable_attribute(id_pkiStatus, _code(pki_status)))
    if fail_info is not None:
        attrs.append(prepare_printable_attribute(id_failInfo, _code(fail_info)))
    return attrs


def sign_data(key: SignKey, data: bytes, hash_alg: str = "sha256") -> bytes:
    """Sign the data with a traditional key."""
    if isinstance(key, rsa.RSAPrivateKey):
        return key.sign(data, padding.PKCS1v15(), hash_name_to_instance(hash_alg))
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return key.sign(data, ec.ECDSA(hash_name_to_instance(hash_alg)))
    if isinstance(key, ed25519.Ed25519PrivateKey):
        return key.sign(data)
    raise ValueError(f"Unsupported key type: {type(key).__name__}")


def _get_sig_alg_oid(key: SignKey, use_rsa_encryption_oid: bool) -> univ.ObjectIdentifier:
    if isinstance(key, rsa.RSAPrivateKey):
        return rsaEncryption if use_rsa_encryption_oid else sha256WithRSAEncryption
    if isinstance(key, ec.EllipticCurvePrivateKey):
        return ecdsa_with_SHA256
    return id_Ed25519


def build_scep_signed_data(
    signing_key: SignKey,
    signer_cert: x509.Certificate,
    scep_attrs: Optional[List[rfc5652.Attribute]] = None,
    e_content: Optional[bytes] = None,
    include_cert: bool = True,
    use_ski: bool = False,
    bad_sig: bool = False,
    bad_digest: bool = False,
    use_rsa_encryption_oid: bool = False,
    include_signed_attrs: bool = True,
    extra_certs: Optional[List[x509.Certificate]] = None,
) -> rfc5652.SignedData:
    """Build a signed SCEP `pkiMessage`.

    The `contentType` and `messageDigest` attributes are added to the SCEP attributes.

    :param signing_key: The key of the signer.
    :param signer_cert: The certificate of the signer.
    :param scep_attrs: The SCEP attributes. Defaults to the attributes of a `PKCSReq`.
    :param e_content: The `eContent`, usually the DER-encoded `ContentInfo(EnvelopedData)`.
    :param include_cert: Whether to include the signer certificate. Defaults to `True`.
    :param use_ski: Whether to identify the signer by its SubjectKeyIdentifier. Defaults to `False`.
    :param bad_sig: Whether to manipulate the signature. Defaults to `False`.
    :param bad_digest: Whether to set a wrong `messageDigest`. Defaults to `False`.
    :param use_rsa_encryption_oid: Whether to use `rsaEncryption` as signature algorithm. Defaults to `False`.
    :param include_signed_attrs: Whether to sign attributes or the `eContent` directly. Defaults to `True`.
    :param extra_certs: Additional certificates to include.
    :return: The populated `SignedData` structure.
    """
    if scep_attrs is None:
        scep_attrs = prepare_scep_attributes()

    asn1_cert = to_asn1_cert(signer_cert)
    hash_alg = "sha512" if isinstance(signing_key, ed25519.Ed25519PrivateKey) else "sha256"
    content = e_content or b""

    signer_info = rfc5652.SignerInfo()
    signer_info["version"] = 3 if use_ski else 1
    signer_info["sid"] = prepare_signer_identifier(asn1_cert, use_ski=use_ski)
    signer_info["digestAlgorithm"]["algorithm"] = HASH_NAME_2_OID[hash_alg]
    signer_info["signatureAlgorithm"]["algorithm"] = _get_sig_alg_oid(signing_key, use_rsa_encryption_oid)

    if include_signed_attrs:
        digest = compute_hash(hash_alg, content if not bad_digest else content + b"manipulated")
        signed_attrs = signer_info["signedAttrs"]
        signed_attrs.append(prepare_attribute(rfc5652.id_contentType, [rfc5652.id_data]))
        signed_attrs.append(prepare_attribute(rfc5652.id_messageDigest, [univ.OctetString(digest)]))
        for attr in scep_attrs:
            signed_attrs.append(attr)
        data = b"\x31" + encode_to_der(signed_attrs)[1:]
    else:
        data = content

    signature = sign_data(signing_key, data, hash_alg=hash_alg)
    if bad_sig:
        signature = signature[:-1] + bytes([signature[-1] ^ 0xFF])
    signer_info["signature"] = signature

    signed_data = rfc5652.SignedData()
    signed_data["version"] = 3 if use_ski else 1
    digest_alg_id = rfc5652.DigestAlgorithmIdentifier()
    digest_alg_id["algorithm"] = HASH_NAME_2_OID[hash_alg]
    signed_data["digestAlgorithms"].append(digest_alg_id)
    signed_data["encapContentInfo"]["eContentType"] = rfc5652.id_data
    if e_content is not None:
        signed_data["encapContentInfo"]["eContent"] = e_content

    certs = ([signer_cert] if include_cert else []) + (extra_certs or [])
    for cert in certs:
        cert_choice = rfc5652.CertificateChoices()
        cert_choice["certificate"] = to_asn1_cert(cert)
        signed_data["certificates"].append(cert_choice)

    signed_data["signerInfos"].append(signer_info)
    return signed_data


def corrupt_subject_key_identifier(cert: x509.Certificate, extn_value: bytes = b"\xff\xff") -> rfc5280.Certificate:
    """Return the pyasn1 certificate with an undecodable SubjectKeyIdentifier extension value.

    The signature of the certificate is not updated.
    """
    asn1_cert = to_asn1_cert(cert)
    for ext in asn1_cert["tbsCertificate"]["extensions"]:
        if ext["extnID"] == rfc5280.id_ce_subjectKeyIdentifier:
            ext["extnValue"] = extn_value
            return asn1_cert
    raise ValueError("The certificate has no SubjectKeyIdentifier extension.")


def add_certificate(signed_data: rfc5652.SignedData, asn1_cert: rfc5280.Certificate) -> rfc5652.SignedData:
    """Append a pyasn1 certificate to the `certificates` field of a `SignedData` structure."""
    cert_choice = rfc5652.CertificateChoices()
    cert_choice["certificate"] = asn1_cert
    signed_data["certificates"].append(cert_choice)
    return signed_data


def build_scep_message(*args, **kwargs) -> bytes:
    """Build a signed SCEP `pkiMessage` and return the DER-encoded `ContentInfo`.

    Accepts the same arguments as `build_scep_signed_data`.
    """
    signed_data = build_scep_signed_data(*args, **kwargs)
    return encode_to_der(wrap_in_content_info(signed_data, rfc5652.id_signedData))


def build_degenerate_signed_data(
    certs: List[x509.Certificate], crls: Optional[List[rfc5280.CertificateList]] = None
) -> bytes:
    """Build the DER-encoded certs-only `ContentInfo(SignedData)` of a successful `CertRep`."""
    signed_data = rfc5652.SignedData()
    signed_data["version"] = 1
    signed_data["digestAlgorithms"].clear()
    signed_data["encapContentInfo"]["eContentType"] = rfc5652.id_data

    for cert in certs:
        cert_choice = rfc5652.CertificateChoices()
        cert_choice["certificate"] = to_asn1_cert(cert)
        signed_data["certificates"].append(cert_choice)

    for crl in crls or []:
        crl_choice = rfc5652.RevocationInfoChoice()
        crl_choice["crl"] = crl
        signed_data["crls"].append(crl_choice)

    signed_data["signerInfos"].clear()
    return encode_to_der(wrap_in_content_info(signed_data, rfc5652.id_signedData))


def parse_csr(der_data: bytes) -> rfc2986.CertificationRequest:
    """Parse a DER-encoded certification request."""
    return decode_der_strict(der_data, rfc2986.CertificationRequest())
