# *-* coding: utf-8 *-*
import logging
import os
import typing

import attrs

from offlinekyc import archive
from offlinekyc.archive import FallbackPolicy
from offlinekyc.errors import InputError
from offlinekyc.report import DEFAULT_REPORT_NODE


logger = logging.getLogger(__name__)

DEFAULT_CERTIFICATE = 'uidai_offline_publickey_19062019.cer'


@attrs.frozen
class VerifyRequest:
    """
    Everything one verification run needs, collected before the core starts.

    Either ``xml_path`` or ``archive_path`` names the document. An explicit
    ``certificate_path`` takes precedence over a certificate found in the
    archive; ``default_certificate`` is used when neither is available.
    """

    xml_path: typing.Optional[str] = None
    certificate_path: typing.Optional[str] = None
    archive_path: typing.Optional[str] = None
    password: typing.Optional[str] = attrs.field(default=None, repr=False)
    default_certificate: typing.Optional[str] = DEFAULT_CERTIFICATE
    workdir: typing.Optional[str] = None
    fallback: FallbackPolicy = attrs.field(default=FallbackPolicy.FAIL, converter=FallbackPolicy)
    include_declaration: bool = True
    remove_blank_text: bool = False
    report_node: str = DEFAULT_REPORT_NODE
    show_certificate: bool = False


def resolve_inputs(request: VerifyRequest) -> typing.Tuple[str, str]:
    """
    Turn a request into the (document path, certificate path) pair.

    Runs the archive extraction when the request names an archive.

    :raises InputError: if the document or the certificate cannot be determined.
    """
    cert_path = request.certificate_path
    if request.archive_path:
        extracted = archive.extract(
            request.archive_path, request.password, request.workdir, request.fallback
        )
        xml_path = extracted.xml_path
        if cert_path is None:
            cert_path = extracted.certificate_path
    elif request.xml_path:
        xml_path = request.xml_path
    else:
        raise InputError('no XML document or archive given')

    if cert_path is None:
        default = request.default_certificate
        if default and os.path.isfile(default):
            logger.info('using default issuer certificate %s', default)
            cert_path = default
        else:
            raise InputError('no certificate given and default certificate %s not found' % default)
    return xml_path, cert_path
