# *-* coding: utf-8 *-*


class VerifierError(ValueError):
    """Base class for every input, parse, structure and crypto failure."""


class InputError(VerifierError):
    pass


class DocumentNotFound(InputError):
    pass


class CertificateNotFound(InputError):
    pass


class ArchiveError(InputError):
    pass


class ParseError(VerifierError):
    pass


class XmlParseError(ParseError):
    pass


class CertificateParseError(ParseError):
    pass


class StructureError(VerifierError):
    pass


class CryptoError(VerifierError):
    pass


class SignatureDecodeError(CryptoError):
    pass


class SignatureFormatError(CryptoError):
    pass
