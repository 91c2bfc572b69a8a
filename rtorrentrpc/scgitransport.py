"""SCGI XMLRPC Transport.

rtorrent does not speak HTTP, it expects XMLRPC documents wrapped in SCGI requests.
This module frames the request, sends it over a TCP or unix socket and reads back
the status line, headers and the length delimited body.

Example:
  Small usage example

  literal blocks::
    transport = SCGITransport(host='127.0.0.1', port=5000, timeout=10)
    response = transport.request(build_call('system.listMethods', []).encode('utf-8'))

Every call opens its own connection, nothing is kept between calls.

License:
    Public Domain (no attribution needed).
    The license only applies to THIS file.
"""

import logging
import re
import socket
import time

from .exceptions import BadStatus, ConnectFailed, MalformedHeader, Timeout, TransportIO

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r'^([^:]+): *(.*)$')

def encode_netstring(input):
    return str(len(input)).encode() + b':' + input + b','

def encode_header(key, value):
    return key + b'\x00' + value + b'\x00'

def encode_request(request_body):
    """
    Wraps a request body with the SCGI header block rtorrent expects.
    """
    header = encode_header(b'CONTENT_LENGTH', str(len(request_body)).encode())
    header += encode_header(b'SCGI', b'1')
    header += encode_header(b'REQUEST_METHOD', b'POST')
    header += encode_header(b'SERVER_PROTOCOL', b'HTTP/1.1')

    return encode_netstring(header) + request_body

def read_headers(f, before_read=None):
    """
    Reads header lines until the empty line, returns them with lowercased names.
    """
    headers = {}
    while True:
        if before_read:
            before_read()
        line = f.readline()
        if not line:
            raise TransportIO('Connection closed while reading headers')

        line = line.rstrip(b'\n').rstrip(b'\r').decode('latin-1')
        if not line:
            return headers

        m = HEADER_RE.match(line)
        if not m:
            raise MalformedHeader('Malformed header line %r' % line)

        name, value = m.groups()
        headers[name.strip().lower()] = value

def check_status(headers):
    status = headers.get('status', '')
    try:
        code = int(status[:3])
    except ValueError:
        raise BadStatus(None, 'Unable to parse status %r' % status)

    if code != 200:
        raise BadStatus(code, 'Wrong response code %s' % status)

def read_body(f, headers):
    if 'content-length' not in headers:
        raise MalformedHeader('Missing content-length header')

    try:
        length = int(headers['content-length'])
    except ValueError:
        raise MalformedHeader('Invalid content-length %r' % headers['content-length'])

    if length < 0:
        raise MalformedHeader('Invalid content-length %r' % headers['content-length'])

    body = f.read(length)
    if len(body) < length:
        raise TransportIO('Short read, expected %i bytes and got %i' % (length, len(body)))

    return body

def read_response(f, before_read=None):
    """
    Parses a complete SCGI response from a binary file object and returns the body.
    """
    headers = read_headers(f, before_read)
    logger.debug('Got response headers %r' % (headers, ))
    check_status(headers)
    if before_read:
        before_read()
    return read_body(f, headers)

class Deadline(object):
    """
    Tracks the time left of a call that must finish within timeout seconds.
    """

    def __init__(self, timeout=None):
        self.timeout = timeout
        self.expires = None if timeout is None else time.monotonic() + timeout

    def remaining(self):
        if self.expires is None:
            return None

        remaining = self.expires - time.monotonic()
        if remaining <= 0:
            raise Timeout('Call did not finish within %s seconds' % self.timeout)
        return remaining

class SCGITransport(object):
    def __init__(self, host=None, port=None, socket_path=None, timeout=None):
        """
        Initializes a transport to a SCGI listener.

        host, port - TCP address of the listener.
        socket_path - unix socket of the listener, used instead of host and port.
        timeout - seconds the complete call may take, None waits forever.
        """
        self.host = host
        self.port = port
        self.socket_path = socket_path
        self.timeout = timeout

    def __repr__(self):
        if self.socket_path:
            return '<SCGITransport %s>' % self.socket_path
        return '<SCGITransport %s:%s>' % (self.host, self.port)

    def _connect(self, deadline):
        try:
            if self.socket_path:
                s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                try:
                    s.settimeout(deadline.remaining())
                    s.connect(self.socket_path)
                except BaseException:
                    s.close()
                    raise
                return s

            return socket.create_connection((self.host, int(self.port)), timeout=deadline.remaining())
        except socket.timeout:
            raise Timeout('Timed out connecting to %r' % self)
        except OSError as e:
            raise ConnectFailed('Unable to connect to %r: %s' % (self, e))

    def request(self, request_body):
        """
        Sends a request body and returns the raw response body.
        """
        deadline = Deadline(self.timeout)
        s = self._connect(deadline)
        logger.debug('Connected to %r, sending %i bytes' % (self, len(request_body)))

        with s:
            def before_read():
                s.settimeout(deadline.remaining())

            try:
                before_read()
                s.sendall(encode_request(request_body))

                with s.makefile('rb') as f:
                    return read_response(f, before_read)
            except socket.timeout:
                raise Timeout('Timed out talking to %r' % self)
            except OSError as e:
                raise TransportIO(str(e))
