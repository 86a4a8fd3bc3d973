# *-* coding: utf-8 *-*
import enum
import glob
import logging
import os
import shutil
import tempfile
import typing
import zipfile
import zlib
from subprocess import DEVNULL, PIPE, Popen

import attrs

from offlinekyc.errors import ArchiveError


logger = logging.getLogger(__name__)

SEVENZIP_NAMES = ('7z', '7za', '7zz')
SEVENZIP_PATHS = (
    r'C:\Program Files\7-Zip\7z.exe',
    r'C:\Program Files (x86)\7-Zip\7z.exe',
)
CERTIFICATE_EXTENSIONS = ('.cer', '.crt', '.pem')


class FallbackPolicy(enum.Enum):
    """What to do with a password protected archive when 7-Zip is missing."""

    FAIL = 'fail'
    DEGRADE = 'degrade'


@attrs.frozen
class ExtractedFiles:
    xml_path: str
    certificate_path: typing.Optional[str] = None


def find_sevenzip() -> typing.Optional[str]:
    for name in SEVENZIP_NAMES:
        path = shutil.which(name)
        if path:
            return path
    for path in SEVENZIP_PATHS:
        if os.path.isfile(path):
            return path
    return None


class Extractor(object):
    def __init__(self, policy=FallbackPolicy.FAIL, tool=None):
        self.policy = FallbackPolicy(policy)
        self.tool = tool

    def sevenzip(self, tool: str, archive: str, password: str, workdir: str) -> None:
        cmd = [
            tool, 'x', archive,
            '-o' + workdir,
            '-p' + password,
            '-y',
        ]
        logger.debug('running %s x %s -o%s', tool, archive, workdir)
        try:
            process = Popen(cmd, stdin=DEVNULL, stdout=PIPE, stderr=PIPE)
        except OSError as ex:
            raise ArchiveError('cannot run %s: %s' % (tool, ex))
        stdout, stderr = process.communicate()
        if process.returncode != 0:
            message = stderr.decode('utf-8', 'replace').strip() or stdout.decode('utf-8', 'replace').strip()
            raise ArchiveError(
                'extraction of %s failed (7-Zip exit code %d): %s'
                % (archive, process.returncode, message)
            )

    def unzip(self, archive: str, password: typing.Optional[str], workdir: str) -> None:
        pwd = password.encode('utf-8') if password else None
        try:
            with zipfile.ZipFile(archive) as zfp:
                zfp.extractall(workdir, pwd=pwd)
        except zipfile.BadZipFile as ex:
            raise ArchiveError('%s is not a zip archive: %s' % (archive, ex))
        except RuntimeError as ex:
            # raised for a missing or wrong password
            raise ArchiveError('cannot decrypt %s: %s' % (archive, ex))
        except NotImplementedError as ex:
            raise ArchiveError('unsupported zip encryption in %s: %s' % (archive, ex))
        except (zlib.error, EOFError) as ex:
            raise ArchiveError('%s is corrupt: %s' % (archive, ex))
        except OSError as ex:
            raise ArchiveError('cannot extract %s: %s' % (archive, ex))

    def locate(self, workdir: str) -> ExtractedFiles:
        names = sorted(glob.glob(os.path.join(glob.escape(workdir), '**', '*'), recursive=True))
        xmls = [n for n in names if n.lower().endswith('.xml') and os.path.isfile(n)]
        certs = [
            n for n in names
            if n.lower().endswith(CERTIFICATE_EXTENSIONS) and os.path.isfile(n)
        ]
        if not xmls:
            raise ArchiveError('XML file not found in the archive')
        if len(xmls) > 1:
            logger.warning('archive holds %d XML files, using %s', len(xmls), xmls[0])
        cert = certs[0] if certs else None
        logger.info('found XML file %s', os.path.basename(xmls[0]))
        if cert is None:
            logger.info('certificate not found in the archive')
        return ExtractedFiles(xml_path=xmls[0], certificate_path=cert)

    def extract(self, archive: str, password: typing.Optional[str], workdir: typing.Optional[str] = None) -> ExtractedFiles:
        if not os.path.isfile(archive):
            raise ArchiveError('archive %s not found' % archive)
        try:
            if workdir is None:
                workdir = tempfile.mkdtemp(prefix='offlinekyc_')
            else:
                os.makedirs(workdir, exist_ok=True)
        except OSError as ex:
            raise ArchiveError('cannot create extraction directory: %s' % ex)
        logger.info('extracting %s to %s', archive, workdir)

        if password:
            tool = self.tool or find_sevenzip()
            if tool is not None:
                self.sevenzip(tool, archive, password, workdir)
            elif self.policy is FallbackPolicy.DEGRADE:
                logger.warning(
                    '7-Zip not found, extracting %s with the zipfile module; '
                    'AES encrypted archives will fail', archive
                )
                self.unzip(archive, password, workdir)
            else:
                raise ArchiveError(
                    '7-Zip not found, cannot extract password protected archive %s' % archive
                )
        else:
            self.unzip(archive, None, workdir)
        return self.locate(workdir)


def extract(archive: str, password: typing.Optional[str], workdir: typing.Optional[str] = None, policy=FallbackPolicy.FAIL) -> ExtractedFiles:
    """
    Extract an identity export archive and find the document and certificate in it.

    :param archive: Path to the .zip archive.
    :param password: Archive password (share code), None for an unprotected archive.
    :param workdir: Directory to extract into, a new temporary directory if None.
    :param policy: FallbackPolicy used when a password is given and 7-Zip is missing.
    :return: ExtractedFiles with the XML path and the certificate path (or None).
    :raises ArchiveError: if the archive cannot be extracted or holds no XML file.
    """
    cls = Extractor(policy)
    return cls.extract(archive, password, workdir)
