# *-* coding: utf-8 *-*
from .document import SignedDocument, parse_document, parse_document_file
from .sign import sign
from .verify import verify, verify_files
