#!/usr/bin/env vpython3
# coding: utf-8
import unittest

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from offlinekyc import verifier
from offlinekyc.errors import SignatureFormatError

import test_cert


def rsa_sign(key, datau):
    return key.sign(datau, padding.PKCS1v15(), hashes.SHA256())


class VerifierTests(unittest.TestCase):
    def setUp(self):
        ca = test_cert.CA()
        self.key = ca.issuer()
        self.other = ca.other()
        self.datau = b'<Root><Data name="Alice"/></Root>'

    def test_valid(self):
        signature = rsa_sign(self.key, self.datau)
        assert verifier.verify_signature(self.key.public_key(), self.datau, signature) is True

    def test_modified_payload(self):
        signature = rsa_sign(self.key, self.datau)
        datau = self.datau.replace(b'Alice', b'Alicf')
        assert verifier.verify_signature(self.key.public_key(), datau, signature) is False

    def test_wrong_key(self):
        signature = rsa_sign(self.key, self.datau)
        assert verifier.verify_signature(self.other.public_key(), self.datau, signature) is False

    def test_modified_signature(self):
        signature = bytearray(rsa_sign(self.key, self.datau))
        signature[-1] ^= 0x01
        assert verifier.verify_signature(self.key.public_key(), self.datau, bytes(signature)) is False

    def test_pss_signature_rejected(self):
        signature = self.key.sign(
            self.datau,
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=32),
            hashes.SHA256(),
        )
        assert verifier.verify_signature(self.key.public_key(), self.datau, signature) is False

    def test_undersized_signature(self):
        signature = rsa_sign(self.key, self.datau)
        assert verifier.verify_signature(self.key.public_key(), self.datau, signature[:-1]) is False

    def test_oversized_signature(self):
        signature = rsa_sign(self.key, self.datau)
        assert verifier.verify_signature(self.key.public_key(), self.datau, signature + b'\x00') is False

    def test_wrong_key_size(self):
        ca = test_cert.CA()
        signature = rsa_sign(self.key, self.datau)
        assert verifier.verify_signature(ca.large().public_key(), self.datau, signature) is False
        assert verifier.verify_signature(ca.small().public_key(), self.datau, signature) is False
        signature = rsa_sign(ca.large(), self.datau)
        assert verifier.verify_signature(self.key.public_key(), self.datau, signature) is False

    def test_empty_signature(self):
        with self.assertRaises(SignatureFormatError):
            verifier.verify_signature(self.key.public_key(), self.datau, b'')

    def test_non_rsa_key(self):
        key = test_cert.CA().ec()
        with self.assertRaises(SignatureFormatError):
            verifier.verify_signature(key.public_key(), self.datau, b'\x00' * 256)

    def test_deterministic(self):
        signature = rsa_sign(self.key, self.datau)
        cls = verifier.VerifyData(self.key.public_key())
        assert cls.verify(self.datau, signature) == cls.verify(self.datau, signature) == True


if __name__ == '__main__':
    unittest.main()
