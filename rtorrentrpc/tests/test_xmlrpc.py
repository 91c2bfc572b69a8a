from datetime import datetime, timedelta, timezone
from unittest import TestCase
from xml.etree import ElementTree

from ..exceptions import DecodeError, Fault
from ..xmlrpc import (Array, Binary, Boolean, Double, Integer, String, Struct,
                      build_call, decode, encode, parse_response, wrap)

def roundtrip(value):
    return decode(ElementTree.fromstring('<value>%s</value>' % encode(value)))

class TestEncode(TestCase):
    def test_scalars(self):
        self.assertEqual(encode('abc'), '<string>abc</string>')
        self.assertEqual(encode(True), '<boolean>1</boolean>')
        self.assertEqual(encode(False), '<boolean>0</boolean>')
        self.assertEqual(encode(42), '<int>42</int>')
        self.assertEqual(encode(2**40), '<i8>1099511627776</i8>')
        self.assertEqual(encode(1.5), '<double>1.5</double>')
        self.assertEqual(encode(b'abc'), '<base64>YWJj</base64>')

    def test_escaping(self):
        self.assertEqual(encode('<a&b>\'"'), '<string>&lt;a&amp;b&gt;&apos;&quot;</string>')
        self.assertEqual(roundtrip('<a&b>\'"'), '<a&b>\'"')
        self.assertEqual(encode('a\r\nb'), '<string>a&#13;\nb</string>')

    def test_datetime(self):
        value = datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        self.assertEqual(encode(value), '<dateTime.iso8601>2021-03-04T05:06:07Z</dateTime.iso8601>')

        shifted = datetime(2021, 3, 4, 7, 6, 7, tzinfo=timezone(timedelta(hours=2)))
        self.assertEqual(encode(shifted), encode(value))

        self.assertEqual(encode(datetime(2021, 3, 4, 5, 6, 7)), '<dateTime.iso8601>2021-03-04T05:06:07</dateTime.iso8601>')

    def test_containers(self):
        self.assertEqual(encode([1, 'a']), '<array><data><value><int>1</int></value><value><string>a</string></value></data></array>')
        self.assertEqual(encode([]), '<array><data></data></array>')
        self.assertEqual(encode({'a<': 1}), '<struct><member><name>a&lt;</name><value><int>1</int></value></member></struct>')

    def test_variants(self):
        self.assertEqual(wrap('1'), String('1'))
        self.assertEqual(wrap(True), Boolean(True))
        self.assertEqual(wrap(1), Integer(1))
        self.assertEqual(wrap(1.0), Double(1.0))
        self.assertEqual(wrap((1, 2)), Array([1, 2]))
        self.assertEqual(wrap({'a': 1}), Struct({'a': 1}))
        self.assertEqual(wrap(bytearray(b'x')), Binary(b'x'))
        self.assertNotEqual(String('1'), Integer(1))
        self.assertNotEqual(Integer(1), Integer(2))
        self.assertEqual(encode(String('5')), '<string>5</string>')
        self.assertEqual(encode(Double(5)), '<double>5.0</double>')

    def test_unknown_type(self):
        self.assertRaises(TypeError, encode, object())
        self.assertRaises(TypeError, encode, None)

    def test_struct_names_must_be_strings(self):
        self.assertRaises(TypeError, encode, {1: 'a'})
        self.assertRaises(TypeError, encode, [{('a', 'b'): 1}])

    def test_characters_not_allowed_in_xml(self):
        self.assertRaises(TypeError, encode, 'a\x01b')
        self.assertRaises(TypeError, encode, {'a\x00': 1})
        self.assertRaises(TypeError, build_call, 'd.name\x1b', [])
        self.assertEqual(roundtrip(Binary(b'a\x01b')), b'a\x01b')

class TestDecode(TestCase):
    def test_roundtrip(self):
        values = [
            'text', '', 'line1\r\nline2\r', 'tab\tand\nnewline', True, False, 0, -17, 2**35, 3.25, -0.1,
            datetime(2020, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
            datetime(2021, 1, 1), datetime(2021, 1, 1, 12, 30, 45, 10),
            [], [1, [2, [3, 'x']]],
            {'name': 'foo.torrent', 'files': [{'size': 1024, 'done': True}], 'empty': {}},
        ]
        for value in values:
            self.assertEqual(roundtrip(value), value)

    def test_binary(self):
        self.assertEqual(roundtrip(b'\x00\xff'), b'\x00\xff')

    def test_types(self):
        self.assertEqual(decode(ElementTree.fromstring('<i4>7</i4>')), 7)
        self.assertEqual(decode(ElementTree.fromstring('<i8>8</i8>')), 8)
        self.assertEqual(decode(ElementTree.fromstring('<boolean>true</boolean>')), True)
        self.assertEqual(decode(ElementTree.fromstring('<boolean>false</boolean>')), False)
        self.assertEqual(decode(ElementTree.fromstring('<string/>')), '')
        self.assertEqual(decode(ElementTree.fromstring('<value>untyped</value>')), 'untyped')
        self.assertEqual(decode(ElementTree.fromstring('<array><data/></array>')), [])
        self.assertEqual(decode(ElementTree.fromstring('<dateTime.iso8601>20210304T05:06:07</dateTime.iso8601>')),
                         datetime(2021, 3, 4, 5, 6, 7))
        self.assertEqual(decode(ElementTree.fromstring('<dateTime.iso8601>2021-03-04T07:06:07+02:00</dateTime.iso8601>')),
                         datetime(2021, 3, 4, 5, 6, 7, tzinfo=timezone.utc))

    def test_duplicate_members(self):
        element = ElementTree.fromstring(
            '<struct>'
            '<member><name>a</name><value><int>1</int></value></member>'
            '<member><name>a</name><value><int>2</int></value></member>'
            '</struct>')
        self.assertEqual(decode(element), {'a': 2})

    def test_errors(self):
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<nil/>'))
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<int>abc</int>'))
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<double/>'))
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<params/>'))
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<member><name>a</name></member>'))
        self.assertRaises(DecodeError, decode, ElementTree.fromstring('<dateTime.iso8601>yesterday</dateTime.iso8601>'))

class TestFramer(TestCase):
    def test_build_call(self):
        self.assertEqual(build_call('d.name', ['ABC']),
                         '<?xml version="1.0"?><methodCall><methodName>d.name</methodName>'
                         '<params><param><value><string>ABC</string></value></param></params></methodCall>')
        self.assertEqual(build_call('system.listMethods', []),
                         '<?xml version="1.0"?><methodCall><methodName>system.listMethods</methodName>'
                         '<params></params></methodCall>')

    def test_build_call_escapes_method(self):
        self.assertIn('<methodName>a&lt;b</methodName>', build_call('a<b', []))

    def test_build_call_empty_method(self):
        self.assertRaises(ValueError, build_call, '', [])

    def test_parse_response(self):
        document = ('<methodResponse><params><param><value><array><data>'
                    '<value><string>d.multicall2</string></value>'
                    '</data></array></value></param></params></methodResponse>')
        self.assertEqual(parse_response(document), ['d.multicall2'])
        self.assertEqual(parse_response(document.encode('utf-8')), ['d.multicall2'])

    def test_parse_fault(self):
        document = ('<?xml version="1.0"?><methodResponse><fault><value><struct>'
                    '<member><name>faultCode</name><value><i4>-506</i4></value></member>'
                    '<member><name>faultString</name><value><string>Method \'foo\' not defined</string></value></member>'
                    '</struct></value></fault></methodResponse>')
        with self.assertRaises(Fault) as cm:
            parse_response(document)

        self.assertEqual(cm.exception.fault_code, -506)
        self.assertEqual(cm.exception.fault_string, "Method 'foo' not defined")
        self.assertEqual(cm.exception.fault['faultCode'], -506)

    def test_fault_root(self):
        fault = decode(ElementTree.fromstring(
            '<fault><value><struct><member><name>faultString</name><value><string>x</string></value></member></struct></value></fault>'))
        self.assertEqual(fault, {'faultString': 'x'})

    def test_parse_invalid(self):
        self.assertRaises(DecodeError, parse_response, '')
        self.assertRaises(DecodeError, parse_response, 'not xml at all')
        self.assertRaises(DecodeError, parse_response, '<methodResponse><params><param><value><foo/></value></param></params></methodResponse>')
