# *-* coding: utf-8 *-*
import base64

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from lxml import etree

from offlinekyc.errors import StructureError
from offlinekyc.xml.document import DocumentParser, declaration, elements, localname


class SignedData(object):
    def __init__(self, include_declaration=True, remove_blank_text=False, namespace=None):
        self.parser = DocumentParser(include_declaration, remove_blank_text)
        self.namespace = namespace

    def tag(self, name):
        if self.namespace is None:
            return name
        return etree.QName(self.namespace, name).text

    def container(self, signature: bytes):
        nsmap = {None: self.namespace} if self.namespace else None
        container = etree.Element(self.tag('Signature'), nsmap=nsmap)
        value = etree.SubElement(container, self.tag('SignatureValue'))
        value.text = base64.b64encode(signature).decode('ascii')
        return container

    def build(self, datau: bytes, key: rsa.RSAPrivateKey) -> bytes:
        tree = self.parser.load(datau)
        root = tree.getroot()
        children = elements(root)
        if not children:
            raise StructureError('root element <%s> has no child elements' % localname(root))
        payload = self.parser.serialize(datau, tree)
        signature = key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
        # the container becomes the second child element of the root
        index = root.index(children[0]) + 1
        root.insert(index, self.container(signature))
        body = etree.tostring(tree, encoding='UTF-8', xml_declaration=False)
        return declaration(datau) + body


def sign(datau: bytes, key: rsa.RSAPrivateKey, include_declaration=True, remove_blank_text=False, namespace=None) -> bytes:
    """
    Sign an XML document the way offline identity exports are signed.

    The payload is the document serialized exactly as the verifier rebuilds it,
    the RSASSA-PKCS1-v1_5 / SHA-256 signature is embedded as
    ``<Signature><SignatureValue>...</SignatureValue></Signature>``
    right after the first child element of the root.

    :param datau: Unsigned XML document as bytes (UTF-8).
    :param key: RSA private key to sign with.
    :param include_declaration: Must match the verifier setting.
    :param remove_blank_text: Must match the verifier setting.
    :param namespace: Optional namespace URI for the signature elements.
    :return: Signed XML document as bytes.
    """
    cls = SignedData(include_declaration, remove_blank_text, namespace)
    return cls.build(datau, key)
