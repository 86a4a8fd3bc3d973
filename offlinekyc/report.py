# *-* coding: utf-8 *-*
import sys
import typing

import attrs
from lxml import etree

from offlinekyc.certificate import TrustedCertificate


DEFAULT_REPORT_NODE = 'Poi'

FIELDS = (
    ('Name', 'name'),
    ('DOB', 'dob'),
    ('Gender', 'gender'),
)


@attrs.frozen
class VerificationResult:
    valid: bool
    identity: typing.Optional[typing.Dict[str, str]] = None
    certificate: typing.Optional[TrustedCertificate] = None


def project(tree: etree._ElementTree, node: str) -> typing.Optional[typing.Dict[str, str]]:
    """Attributes of the first ``node`` element, missing ones as empty strings."""
    for element in tree.getroot().iter('{*}' + node):
        return {attr: element.get(attr, '') for _, attr in FIELDS}
    return None


class Reporter(object):
    def __init__(self, stream=None, show_certificate=False):
        self.stream = stream if stream is not None else sys.stdout
        self.show_certificate = show_certificate

    def write(self, line=''):
        print(line, file=self.stream)

    def banner(self):
        self.write('Offline XML Verifier')

    def certificate(self, cert: TrustedCertificate):
        self.write('Certificate: %s' % cert.subject)
        self.write('Issuer: %s' % cert.issuer)
        self.write('Serial: %x' % cert.serial_number)
        self.write('Valid: %s - %s' % (cert.not_valid_before, cert.not_valid_after))

    def report(self, result: VerificationResult):
        if self.show_certificate and result.certificate is not None:
            self.certificate(result.certificate)
        if not result.valid:
            self.write('XML Validation Failed')
            return
        self.write('XML Validated Successfully')
        if result.identity is not None:
            self.write()
            self.write('Basic Information:')
            for label, attr in FIELDS:
                self.write('%s: %s' % (label, result.identity.get(attr, '')))

    def error(self, ex: Exception):
        self.write('Error verifying XML: %s' % ex)
