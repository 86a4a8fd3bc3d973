#!/usr/bin/env vpython3
# coding: utf-8
import unittest
import io
import os
import tempfile
import zipfile
import zlib
from unittest import mock

from offlinekyc import archive, pipeline
from offlinekyc.archive import ExtractedFiles, Extractor, FallbackPolicy
from offlinekyc.config import VerifyRequest
from offlinekyc.errors import ArchiveError, InputError
from offlinekyc.report import Reporter


class ArchiveTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name
        self.workdir = os.path.join(self.root, 'out')

    def tearDown(self):
        self.tmp.cleanup()

    def make_zip(self, *names):
        fname = os.path.join(self.root, 'offlineaadhaar.zip')
        with zipfile.ZipFile(fname, 'w') as zfp:
            for name in names:
                zfp.writestr(name, b'<data/>')
        return fname

    def test_extract_plain(self):
        fname = self.make_zip('offlineaadhaar20190619.xml', 'uidai_offline_publickey.cer')
        extracted = archive.extract(fname, None, self.workdir)
        assert extracted == ExtractedFiles(
            os.path.join(self.workdir, 'offlineaadhaar20190619.xml'),
            os.path.join(self.workdir, 'uidai_offline_publickey.cer'),
        )

    def test_extract_without_certificate(self):
        fname = self.make_zip('offlineaadhaar20190619.xml')
        extracted = archive.extract(fname, None, self.workdir)
        assert extracted.certificate_path is None
        assert extracted.xml_path.endswith('offlineaadhaar20190619.xml')

    def test_extract_temporary_directory(self):
        fname = self.make_zip('doc.xml')
        extracted = archive.extract(fname, None)
        try:
            assert os.path.basename(os.path.dirname(extracted.xml_path)).startswith('offlinekyc_')
        finally:
            os.unlink(extracted.xml_path)
            os.rmdir(os.path.dirname(extracted.xml_path))

    def test_no_xml(self):
        fname = self.make_zip('readme.txt', 'key.cer')
        with self.assertRaises(ArchiveError):
            archive.extract(fname, None, self.workdir)

    def test_several_xml(self):
        fname = self.make_zip('b.xml', 'a.xml')
        with self.assertLogs('offlinekyc.archive', level='WARNING'):
            extracted = archive.extract(fname, None, self.workdir)
        assert extracted.xml_path.endswith('a.xml')

    def test_missing_archive(self):
        with self.assertRaises(ArchiveError) as ctx:
            archive.extract(os.path.join(self.root, 'missing.zip'), '1234', self.workdir)
        assert isinstance(ctx.exception, InputError)

    def test_not_a_zip(self):
        fname = os.path.join(self.root, 'broken.zip')
        with open(fname, 'wb') as fh:
            fh.write(b'not a zip file')
        with self.assertRaises(ArchiveError):
            archive.extract(fname, None, self.workdir)

    def make_corrupt_zip(self):
        fname = os.path.join(self.root, 'corrupt.zip')
        name = 'offlineaadhaar20190619.xml'
        with zipfile.ZipFile(fname, 'w', zipfile.ZIP_DEFLATED) as zfp:
            zfp.writestr(name, b'<OfflinePaperlessKyc>' + b'<Poi name="Alice"/>' * 200 + b'</OfflinePaperlessKyc>')
        with open(fname, 'rb') as fh:
            data = bytearray(fh.read())
        # compressed data starts after the 30 byte local header and the name
        start = 30 + len(name)
        for i in range(start, start + 16):
            data[i] ^= 0xff
        with open(fname, 'wb') as fh:
            fh.write(data)
        return fname

    def test_corrupt_archive(self):
        with self.assertRaises(ArchiveError):
            archive.extract(self.make_corrupt_zip(), None, self.workdir)

    def test_corrupt_archive_pipeline(self):
        stream = io.StringIO()
        request = VerifyRequest(archive_path=self.make_corrupt_zip(), certificate_path='issuer.cer')
        code = pipeline.run(request, Reporter(stream))
        assert code == pipeline.EXIT_ERROR
        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert lines[0].startswith('Error verifying XML: ')

    @mock.patch('zipfile.ZipFile.extractall', side_effect=zlib.error('invalid stored block lengths'))
    def test_inflate_error(self, extractall):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError) as ctx:
            archive.extract(fname, None, self.workdir)
        assert 'corrupt' in str(ctx.exception)

    @mock.patch('zipfile.ZipFile.extractall', side_effect=PermissionError(13, 'Permission denied'))
    def test_write_error(self, extractall):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError):
            archive.extract(fname, None, self.workdir)

    @mock.patch('offlinekyc.archive.os.makedirs', side_effect=PermissionError(13, 'Permission denied'))
    def test_workdir_not_writable(self, makedirs):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError) as ctx:
            archive.extract(fname, None, self.workdir)
        assert 'extraction directory' in str(ctx.exception)

    @mock.patch('offlinekyc.archive.tempfile.mkdtemp', side_effect=OSError(28, 'No space left on device'))
    def test_temporary_directory_fails(self, mkdtemp):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError):
            archive.extract(fname, None)

    @mock.patch('offlinekyc.archive.find_sevenzip', return_value=None)
    def test_missing_tool_fails(self, find):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError):
            archive.extract(fname, '1234', self.workdir, FallbackPolicy.FAIL)

    @mock.patch('offlinekyc.archive.find_sevenzip', return_value=None)
    def test_missing_tool_degrades(self, find):
        fname = self.make_zip('doc.xml')
        with self.assertLogs('offlinekyc.archive', level='WARNING') as logs:
            extracted = archive.extract(fname, '1234', self.workdir, 'degrade')
        assert extracted.xml_path == os.path.join(self.workdir, 'doc.xml')
        assert any('7-Zip not found' in line for line in logs.output)

    @mock.patch('offlinekyc.archive.Popen')
    def test_sevenzip(self, popen):
        fname = self.make_zip('doc.xml')
        os.makedirs(self.workdir)
        with open(os.path.join(self.workdir, 'doc.xml'), 'wb') as fh:
            fh.write(b'<data/>')
        popen.return_value.communicate.return_value = (b'Everything is Ok', b'')
        popen.return_value.returncode = 0

        extracted = Extractor(tool='/opt/7z').extract(fname, 'ALIC1990', self.workdir)

        cmd = popen.call_args[0][0]
        assert cmd == ['/opt/7z', 'x', fname, '-o' + self.workdir, '-pALIC1990', '-y']
        assert extracted.xml_path == os.path.join(self.workdir, 'doc.xml')

    @mock.patch('offlinekyc.archive.Popen')
    def test_sevenzip_wrong_password(self, popen):
        fname = self.make_zip('doc.xml')
        popen.return_value.communicate.return_value = (b'', b'ERROR: Wrong password : doc.xml')
        popen.return_value.returncode = 2
        with self.assertRaises(ArchiveError) as ctx:
            Extractor(tool='/opt/7z').extract(fname, 'WRONG', self.workdir)
        assert 'Wrong password' in str(ctx.exception)

    @mock.patch('offlinekyc.archive.Popen', side_effect=FileNotFoundError(2, 'No such file'))
    def test_sevenzip_not_executable(self, popen):
        fname = self.make_zip('doc.xml')
        with self.assertRaises(ArchiveError):
            Extractor(tool='/opt/7z').extract(fname, '1234', self.workdir)


if __name__ == '__main__':
    unittest.main()
