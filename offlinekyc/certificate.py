# *-* coding: utf-8 *-*
import datetime
import logging

import attrs
from asn1crypto import pem, x509
from cryptography import x509 as cx509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa

from offlinekyc.errors import CertificateNotFound, CertificateParseError


logger = logging.getLogger(__name__)


@attrs.frozen
class TrustedCertificate:
    """Issuer certificate reduced to what verification and reporting need.

    Only ``public_key`` takes part in verification; the remaining fields
    are informational, the certificate chain and validity window are not
    checked.
    """

    public_key: rsa.RSAPublicKey
    subject: str
    issuer: str
    serial_number: int
    not_valid_before: datetime.datetime
    not_valid_after: datetime.datetime


def cert2der(cert_bytes: bytes) -> bytes:
    if pem.detect(cert_bytes):
        try:
            name, _, cert_bytes = pem.unarmor(cert_bytes)
        except ValueError as ex:
            raise CertificateParseError('invalid PEM armor: %s' % ex)
        if name != 'CERTIFICATE':
            raise CertificateParseError('PEM block is %r, not CERTIFICATE' % name)
    return cert_bytes


def load_certificate(data: bytes) -> TrustedCertificate:
    """
    Parse a DER or PEM encoded X.509 certificate.

    :param data: Certificate contents as bytes.
    :return: TrustedCertificate with the RSA public key of the issuer.
    :raises CertificateParseError: if the certificate is malformed or its key is not RSA.
    """
    der = cert2der(data)
    try:
        cert = cx509.load_der_x509_certificate(der)
        public_key = cert.public_key()
    except (ValueError, UnsupportedAlgorithm) as ex:
        raise CertificateParseError('malformed certificate: %s' % ex)
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise CertificateParseError(
            'unsupported key algorithm: %s' % type(public_key).__name__
        )

    try:
        asn = x509.Certificate.load(der)
        subject = asn.subject.human_friendly
        issuer = asn.issuer.human_friendly
        serial_number = asn.serial_number
        not_valid_before = asn.not_valid_before
        not_valid_after = asn.not_valid_after
    except (ValueError, TypeError) as ex:
        raise CertificateParseError('malformed certificate: %s' % ex)

    logger.debug(
        'certificate subject=%r serial=%x key=%d bits',
        subject, serial_number, public_key.key_size,
    )
    return TrustedCertificate(
        public_key=public_key,
        subject=subject,
        issuer=issuer,
        serial_number=serial_number,
        not_valid_before=not_valid_before,
        not_valid_after=not_valid_after,
    )


def load_certificate_file(fname: str) -> TrustedCertificate:
    try:
        with open(fname, 'rb') as fh:
            data = fh.read()
    except OSError as ex:
        raise CertificateNotFound('cannot read certificate %s: %s' % (fname, ex.strerror or ex))
    return load_certificate(data)
