# *-* coding: utf-8 *-*
import logging

from offlinekyc import verifier
from offlinekyc.certificate import load_certificate, load_certificate_file
from offlinekyc.report import DEFAULT_REPORT_NODE, VerificationResult, project
from offlinekyc.xml.document import parse_document, parse_document_file


logger = logging.getLogger(__name__)


def check(document, certificate, report_node) -> VerificationResult:
    valid = verifier.verify_signature(
        certificate.public_key, document.payload, document.signature
    )
    logger.info('signature of %r: %s', certificate.subject, 'valid' if valid else 'invalid')
    identity = project(document.tree, report_node) if valid else None
    return VerificationResult(valid=valid, identity=identity, certificate=certificate)


def verify(xmldata: bytes, certdata: bytes, include_declaration=True, remove_blank_text=False, report_node=DEFAULT_REPORT_NODE) -> VerificationResult:
    """
    Verify a signed offline identity XML document.

    Parameters:
        xmldata: Signed XML document as bytes.
        certdata: Issuer certificate (DER or PEM) as bytes.
        include_declaration: Prefix the signed payload with the source XML declaration.
        remove_blank_text: Drop whitespace-only text nodes while parsing.
        report_node: Local name of the element holding the identity fields.

    Returns:
        VerificationResult; ``valid`` is False when the signature does not match,
        ``identity`` is filled only for a valid signature.

    Raises:
        ParseError, StructureError, CryptoError for unusable input.
    """
    certificate = load_certificate(certdata)
    document = parse_document(xmldata, include_declaration, remove_blank_text)
    return check(document, certificate, report_node)


def verify_files(xml_path: str, cert_path: str, include_declaration=True, remove_blank_text=False, report_node=DEFAULT_REPORT_NODE) -> VerificationResult:
    certificate = load_certificate_file(cert_path)
    document = parse_document_file(xml_path, include_declaration, remove_blank_text)
    return check(document, certificate, report_node)
