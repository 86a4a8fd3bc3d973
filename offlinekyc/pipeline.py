# *-* coding: utf-8 *-*
import contextlib
import logging
import tempfile

import attrs

from offlinekyc.config import VerifyRequest, resolve_inputs
from offlinekyc.errors import VerifierError
from offlinekyc.report import Reporter
from offlinekyc.xml.verify import verify_files


logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def run(request: VerifyRequest, reporter: Reporter = None) -> int:
    """
    Run one verification and report its outcome.

    Every VerifierError ends up as a single reported message; the return
    value tells a valid signature, a mismatch and an error apart.

    :return: EXIT_VALID, EXIT_INVALID or EXIT_ERROR.
    """
    if reporter is None:
        reporter = Reporter(show_certificate=request.show_certificate)
    with contextlib.ExitStack() as stack:
        if request.archive_path and request.workdir is None:
            workdir = stack.enter_context(tempfile.TemporaryDirectory(prefix='offlinekyc_'))
            request = attrs.evolve(request, workdir=workdir)
        try:
            xml_path, cert_path = resolve_inputs(request)
            logger.info('verifying %s with %s', xml_path, cert_path)
            result = verify_files(
                xml_path,
                cert_path,
                include_declaration=request.include_declaration,
                remove_blank_text=request.remove_blank_text,
                report_node=request.report_node,
            )
        except VerifierError as ex:
            logger.debug('verification aborted', exc_info=True)
            reporter.error(ex)
            return EXIT_ERROR
    reporter.report(result)
    return EXIT_VALID if result.valid else EXIT_INVALID
