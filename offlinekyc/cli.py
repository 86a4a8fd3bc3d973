# *-* coding: utf-8 *-*
import argparse
import getpass
import logging
import os
import sys

from offlinekyc import __version__, pipeline
from offlinekyc.archive import FallbackPolicy
from offlinekyc.config import DEFAULT_CERTIFICATE, VerifyRequest
from offlinekyc.errors import InputError
from offlinekyc.report import DEFAULT_REPORT_NODE, Reporter


logger = logging.getLogger(__name__)

PASSWORD_PROMPT = 'Enter ZIP password (first 4 letters of name + YYYY): '


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog='offlinekyc',
        description='Verify the signature of an offline identity XML export.',
    )
    ap.add_argument('input', nargs='?', help='signed .xml document or .zip archive')
    ap.add_argument('second', nargs='?', help='certificate for an .xml input, password for a .zip input')
    ap.add_argument('--xml', help='signed XML document')
    ap.add_argument('--cert', help='issuer certificate (DER or PEM)')
    ap.add_argument('--zip', dest='archive', help='password protected export archive')
    ap.add_argument('--password', help='archive password')
    ap.add_argument('--default-cert', default=DEFAULT_CERTIFICATE,
                    help='certificate used when none is given (default: %(default)s)')
    ap.add_argument('--fallback', choices=[p.value for p in FallbackPolicy], default=FallbackPolicy.FAIL.value,
                    help='when 7-Zip is missing: fail, or degrade to the zipfile module (default: %(default)s)')
    ap.add_argument('--no-declaration', action='store_true',
                    help='do not prefix the signed payload with the XML declaration')
    ap.add_argument('--remove-blank-text', action='store_true',
                    help='drop whitespace-only text nodes before rebuilding the payload')
    ap.add_argument('--report-node', default=DEFAULT_REPORT_NODE,
                    help='element holding name, dob and gender (default: %(default)s)')
    ap.add_argument('--show-certificate', action='store_true', help='print certificate details')
    ap.add_argument('--no-input', action='store_true', help='never prompt for missing values')
    ap.add_argument('-v', '--verbose', action='store_true')
    ap.add_argument('--version', action='version', version='%(prog)s ' + __version__)
    return ap


def positional(args) -> None:
    if args.input is None:
        return
    ext = os.path.splitext(args.input)[1].lower()
    if ext == '.zip':
        args.archive = args.archive or args.input
        args.password = args.password or args.second
    elif ext == '.xml':
        args.xml = args.xml or args.input
        args.cert = args.cert or args.second
    else:
        raise InputError('unsupported input %s, expected .xml or .zip' % args.input)


def prompt(args) -> None:
    if not args.xml and not args.archive:
        path = input('Enter XML or ZIP file path: ').strip()
        args.input, args.second = path, None
        positional(args)
    if args.archive and not args.password:
        args.password = getpass.getpass(PASSWORD_PROMPT)
    if args.xml and not args.cert and not os.path.isfile(args.default_cert):
        args.cert = input('Enter certificate file path: ').strip() or None


def request_from_args(args, interactive=False) -> VerifyRequest:
    positional(args)
    if interactive:
        prompt(args)
    return VerifyRequest(
        xml_path=args.xml,
        certificate_path=args.cert,
        archive_path=args.archive,
        password=args.password,
        default_certificate=args.default_cert,
        fallback=args.fallback,
        include_declaration=not args.no_declaration,
        remove_blank_text=args.remove_blank_text,
        report_node=args.report_node,
        show_certificate=args.show_certificate,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    reporter = Reporter(show_certificate=args.show_certificate)
    reporter.banner()
    interactive = not args.no_input and sys.stdin.isatty()
    try:
        request = request_from_args(args, interactive)
    except InputError as ex:
        reporter.error(ex)
        return pipeline.EXIT_ERROR
    except EOFError:
        reporter.error(InputError('input aborted'))
        return pipeline.EXIT_ERROR
    return pipeline.run(request, reporter)


if __name__ == '__main__':
    sys.exit(main())
