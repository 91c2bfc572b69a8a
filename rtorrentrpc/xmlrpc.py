"""XMLRPC codec.

rtorrent only understands a small set of XMLRPC types, so values are lifted into
explicit variants (String, Boolean, Integer, Double, DateTime, Array, Struct, Binary)
before they are written. Responses are decoded back into plain Python values.

Example:
  literal blocks::
    document = build_call('d.multicall2', ['', 'main', 'd.name='])
    result = parse_response(response_text)
"""

import base64
import logging
import re

from datetime import datetime, timezone
from xml.etree import ElementTree

from .exceptions import DecodeError, Fault

logger = logging.getLogger(__name__)

__all__ = [
    'String', 'Boolean', 'Integer', 'Double', 'DateTime', 'Array', 'Struct', 'Binary',
    'wrap', 'encode', 'decode', 'build_call', 'parse_response', 'escape',
]

INT32_MIN = -2**31
INT32_MAX = 2**31 - 1

COMPACT_DATETIME_RE = re.compile(r'^\d{8}T\d{2}:\d{2}:\d{2}$')

# characters XML 1.0 does not allow, not even escaped
INVALID_XML_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

class RpcValue(object):
    __slots__ = ['value']

    def __init__(self, value):
        self.value = value

    def __eq__(self, other):
        return type(self) is type(other) and self.value == other.value

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.value)

class String(RpcValue):
    __slots__ = []

class Boolean(RpcValue):
    __slots__ = []

class Integer(RpcValue):
    __slots__ = []

class Double(RpcValue):
    __slots__ = []

class DateTime(RpcValue):
    __slots__ = []

class Array(RpcValue):
    __slots__ = []

class Struct(RpcValue):
    __slots__ = []

class Binary(RpcValue):
    __slots__ = []

def wrap(x):
    """
    Lifts a native Python value into its variant. Values that are already variants are kept.
    """
    if isinstance(x, RpcValue):
        return x
    if isinstance(x, bool): # must be checked before int
        return Boolean(x)
    if isinstance(x, int):
        return Integer(x)
    if isinstance(x, float):
        return Double(x)
    if isinstance(x, str):
        return String(x)
    if isinstance(x, datetime):
        return DateTime(x)
    if isinstance(x, (list, tuple)):
        return Array(list(x))
    if isinstance(x, dict):
        return Struct(x)
    if isinstance(x, (bytes, bytearray)):
        return Binary(bytes(x))
    raise TypeError('Cannot encode %r as an XMLRPC value' % (x, ))

def escape(s):
    if INVALID_XML_RE.search(s):
        raise TypeError("Cannot encode %r, it contains characters not allowed in XML" % (s, ))
    return (s.replace('&', '&amp;')
             .replace('<', '&lt;')
             .replace('>', '&gt;')
             .replace("'", '&apos;')
             .replace('"', '&quot;')
             .replace('\r', '&#13;'))

def encode_string(x, r):
    r.extend(('<string>', escape(x.value), '</string>'))

def encode_bool(x, r):
    r.extend(('<boolean>', x.value and '1' or '0', '</boolean>'))

def encode_int(x, r):
    if INT32_MIN <= x.value <= INT32_MAX:
        r.extend(('<int>', str(x.value), '</int>'))
    else:
        r.extend(('<i8>', str(x.value), '</i8>'))

def encode_double(x, r):
    r.extend(('<double>', repr(float(x.value)), '</double>'))

def encode_datetime(x, r):
    value = x.value
    if value.tzinfo is None: # no offset is sent for naive datetimes
        r.extend(('<dateTime.iso8601>', value.isoformat(), '</dateTime.iso8601>'))
    else:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
        r.extend(('<dateTime.iso8601>', value.isoformat(), 'Z</dateTime.iso8601>'))

def encode_array(x, r):
    r.append('<array><data>')
    for i in x.value:
        r.append('<value>')
        encode_value(i, r)
        r.append('</value>')
    r.append('</data></array>')

def encode_struct(x, r):
    r.append('<struct>')
    for k, v in x.value.items():
        if not isinstance(k, str):
            raise TypeError("Struct member names must be strings, got %r" % (k, ))
        r.extend(('<member><name>', escape(k), '</name><value>'))
        encode_value(v, r)
        r.append('</value></member>')
    r.append('</struct>')

def encode_binary(x, r):
    r.extend(('<base64>', base64.b64encode(x.value).decode('ascii'), '</base64>'))

encode_func = {}
encode_func[String] = encode_string
encode_func[Boolean] = encode_bool
encode_func[Integer] = encode_int
encode_func[Double] = encode_double
encode_func[DateTime] = encode_datetime
encode_func[Array] = encode_array
encode_func[Struct] = encode_struct
encode_func[Binary] = encode_binary

def encode_value(x, r):
    x = wrap(x)
    encode_func[type(x)](x, r)

def encode(x):
    """
    Encodes a value into the XML fragment that goes inside <value>.
    """
    r = []
    encode_value(x, r)
    return ''.join(r)

def first_child(element):
    for child in element:
        return child
    raise DecodeError('Element <%s> has no child to decode' % element.tag)

def decode_string(element):
    return element.text or ''

def decode_bool(element):
    return (element.text or '').strip() in ('true', '1')

def decode_int(element):
    try:
        return int(element.text)
    except (TypeError, ValueError):
        raise DecodeError('Invalid integer %r in <%s>' % (element.text, element.tag))

def decode_double(element):
    try:
        return float(element.text)
    except (TypeError, ValueError):
        raise DecodeError('Invalid double %r' % (element.text, ))

def decode_datetime(element):
    text = (element.text or '').strip()
    try:
        if COMPACT_DATETIME_RE.match(text):
            value = datetime.strptime(text, '%Y%m%dT%H:%M:%S')
        else:
            if text.endswith('Z'):
                text = text[:-1] + '+00:00'
            value = datetime.fromisoformat(text)
    except ValueError:
        raise DecodeError('Invalid dateTime.iso8601 %r' % (element.text, ))

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc)

def decode_base64(element):
    try:
        return base64.b64decode(element.text or '')
    except ValueError:
        raise DecodeError('Invalid base64 data')

def decode_array(element):
    data = element.find('data')
    if data is None:
        return []
    return decode_data(data)

def decode_data(element):
    return [decode(child) for child in element]

def decode_struct(element):
    result = {}
    for child in element:
        result.update(decode(child)) # duplicate member names: last one wins
    return result

def decode_member(element):
    name = element.find('name')
    value = element.find('value')
    if name is None or value is None:
        raise DecodeError('Struct member without name or value')
    return {name.text or '': decode(value)}

def decode_value(element):
    for child in element:
        return decode(child)
    return element.text or '' # untyped values are strings

def decode_wrapper(element):
    return decode(first_child(element))

decode_func = {}
decode_func['string'] = decode_string
decode_func['boolean'] = decode_bool
decode_func['int'] = decode_int
decode_func['i4'] = decode_int
decode_func['i8'] = decode_int
decode_func['double'] = decode_double
decode_func['dateTime.iso8601'] = decode_datetime
decode_func['base64'] = decode_base64
decode_func['array'] = decode_array
decode_func['data'] = decode_data
decode_func['struct'] = decode_struct
decode_func['member'] = decode_member
decode_func['value'] = decode_value

for tag in ['methodResponse', 'params', 'param', 'fault']:
    decode_func[tag] = decode_wrapper

def decode(element):
    """
    Decodes a parsed XMLRPC element into a Python value.
    """
    try:
        func = decode_func[element.tag]
    except KeyError:
        raise DecodeError('Unknown XMLRPC element <%s>' % element.tag)
    return func(element)

def build_call(method, params):
    """
    Creates a complete methodCall document.
    """
    if not method:
        raise ValueError('A method name is required')

    r = ['<?xml version="1.0"?><methodCall><methodName>', escape(method), '</methodName><params>']
    for param in params:
        r.append('<param><value>')
        encode_value(param, r)
        r.append('</value></param>')
    r.append('</params></methodCall>')
    return ''.join(r)

def parse_response(document):
    """
    Parses a methodResponse document and returns the decoded result.

    A fault response is raised as Fault.
    """
    if isinstance(document, str):
        document = document.encode('utf-8')

    try:
        root = ElementTree.fromstring(document)
    except ElementTree.ParseError as e:
        raise DecodeError('Unable to parse response: %s' % e)

    is_fault = root.tag == 'fault' or (root.tag == 'methodResponse' and root.find('fault') is not None)
    result = decode(root)
    if is_fault:
        if not isinstance(result, dict):
            raise DecodeError('Fault response without a struct')
        logger.debug('Got fault response %r' % (result, ))
        raise Fault(result.get('faultCode'), result.get('faultString'), result)

    return result
