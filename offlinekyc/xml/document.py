# *-* coding: utf-8 *-*
import base64
import binascii
import io
import logging
import re

import attrs
from lxml import etree

from offlinekyc.errors import (
    DocumentNotFound,
    SignatureDecodeError,
    StructureError,
    XmlParseError,
)


logger = logging.getLogger(__name__)

SIGNATURE_TAGS = ('Signature',)
VALUE_TAGS = ('SignatureValue', 'Value')

DECLARATION = re.compile(rb'^(?:\xef\xbb\xbf)?<\?xml\s(.*?)\?>', re.S)
PSEUDO_ATTRIBUTE = re.compile(rb'''(version|encoding|standalone)\s*=\s*(["'])(.*?)\2''')


@attrs.frozen(eq=False)
class SignedDocument:
    """
    Parsed signed document.

    tree: the document as loaded, never modified after parsing.
    signature: decoded signature value.
    payload: document without the signature container, serialized to UTF-8;
        this is the byte sequence the issuer signed.
    """

    tree: etree._ElementTree
    signature: bytes
    payload: bytes


def localname(node) -> str:
    return etree.QName(node).localname


def elements(node) -> list:
    # skip comments and processing instructions
    return [child for child in node if isinstance(child.tag, str)]


def declaration(data: bytes) -> bytes:
    """
    XML declaration of the source as the issuer's serializer writes it:
    pseudo attributes in source order, double quoted, nothing else.
    """
    match = DECLARATION.match(data)
    if match is None:
        return b''
    pairs = [
        b'%s="%s"' % (name, value)
        for name, _, value in PSEUDO_ATTRIBUTE.findall(match.group(1))
    ]
    return b'<?xml ' + b' '.join(pairs) + b'?>'


def detach(node) -> None:
    """Remove node from its parent, leaving its tail text in the document."""
    parent = node.getparent()
    tail = node.tail
    if tail:
        previous = node.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or '') + tail
        else:
            parent.text = (parent.text or '') + tail
        node.tail = None
    parent.remove(node)


class DocumentParser(object):
    def __init__(self, include_declaration=True, remove_blank_text=False):
        self.include_declaration = include_declaration
        self.remove_blank_text = remove_blank_text

    def parser(self) -> etree.XMLParser:
        return etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_blank_text=self.remove_blank_text,
        )

    def load(self, data: bytes) -> etree._ElementTree:
        try:
            return etree.parse(io.BytesIO(data), self.parser())
        except etree.XMLSyntaxError as ex:
            raise XmlParseError('malformed XML: %s' % ex)

    def serialize(self, data: bytes, tree: etree._ElementTree) -> bytes:
        body = etree.tostring(tree, encoding='UTF-8', xml_declaration=False)
        if self.include_declaration:
            return declaration(data) + body
        return body

    def container(self, root):
        children = elements(root)
        if len(children) < 2:
            raise StructureError(
                'root element <%s> has %d child element(s), expected at least 2'
                % (localname(root), len(children))
            )
        for child in children:
            if localname(child) in SIGNATURE_TAGS:
                return child
        raise StructureError(
            'no <%s> element under root <%s>' % (SIGNATURE_TAGS[0], localname(root))
        )

    def value(self, container):
        for child in elements(container):
            if localname(child) in VALUE_TAGS:
                return child
        raise StructureError(
            'no <%s> element inside <%s>' % (VALUE_TAGS[0], localname(container))
        )

    def decode(self, node) -> bytes:
        text = ''.join(''.join(node.itertext()).split())
        if not text:
            raise SignatureDecodeError('signature value is empty')
        try:
            return base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as ex:
            raise SignatureDecodeError('signature value is not valid base64: %s' % ex)

    def payload(self, data: bytes, index: int) -> bytes:
        # work on a separately loaded copy, the caller's tree stays intact
        work = self.load(data)
        detach(work.getroot()[index])
        return self.serialize(data, work)

    def parse(self, data: bytes) -> SignedDocument:
        tree = self.load(data)
        root = tree.getroot()
        container = self.container(root)
        signature = self.decode(self.value(container))
        payload = self.payload(data, root.index(container))
        logger.debug(
            'signature %d bytes, payload %d bytes', len(signature), len(payload)
        )
        return SignedDocument(tree=tree, signature=signature, payload=payload)


def parse_document(data: bytes, include_declaration=True, remove_blank_text=False) -> SignedDocument:
    """
    Split a signed XML document into its signature and the signed payload.

    :param data: Signed XML document as bytes.
    :param include_declaration: Prefix the payload with the source XML declaration.
    :param remove_blank_text: Drop whitespace-only text nodes while parsing.
    :return: SignedDocument
    :raises XmlParseError: if the document is not well-formed.
    :raises StructureError: if the signature container or its value node is missing.
    :raises SignatureDecodeError: if the signature value is not base64.
    """
    cls = DocumentParser(include_declaration, remove_blank_text)
    return cls.parse(data)


def parse_document_file(fname: str, include_declaration=True, remove_blank_text=False) -> SignedDocument:
    try:
        with open(fname, 'rb') as fh:
            data = fh.read()
    except OSError as ex:
        raise DocumentNotFound('cannot read document %s: %s' % (fname, ex.strerror or ex))
    return parse_document(data, include_declaration, remove_blank_text)
