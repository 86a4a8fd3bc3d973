# *-* coding: utf-8 *-*
import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from offlinekyc.errors import SignatureFormatError


logger = logging.getLogger(__name__)


class VerifyData(object):
    def __init__(self, public_key: rsa.RSAPublicKey):
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise SignatureFormatError(
                'RSA public key required, got %s' % type(public_key).__name__
            )
        self.public_key = public_key

    def verify(self, datau: bytes, signature: bytes) -> bool:
        if not isinstance(signature, (bytes, bytearray)):
            raise SignatureFormatError('signature must be bytes')
        if not signature:
            raise SignatureFormatError('signature is empty')
        # a length that does not fit the modulus is a mismatch, e.g. a
        # certificate of another key size
        try:
            self.public_key.verify(
                bytes(signature),
                datau,
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
            signatureok = True
        except InvalidSignature:
            signatureok = False
        logger.debug('rsa-sha256 over %d bytes: %s', len(datau), signatureok)
        return signatureok


def verify_signature(public_key: rsa.RSAPublicKey, datau: bytes, signature: bytes) -> bool:
    """
    Check an RSASSA-PKCS1-v1_5 signature over SHA-256(datau).

    :param public_key: RSA public key of the issuer.
    :param datau: Signed payload as bytes.
    :param signature: Raw signature bytes.
    :return: True if the signature is valid, False on mismatch, including a
        signature whose length does not fit the key.
    :raises SignatureFormatError: if the key is not RSA or the signature is empty or not bytes.
    """
    cls = VerifyData(public_key)
    return cls.verify(datau, signature)
