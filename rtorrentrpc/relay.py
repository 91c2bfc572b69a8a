import logging
import os
import re

from urllib.parse import urlsplit

import requests

from .exceptions import BadStatus, ConnectFailed, NoScgiPort, RelayError, Timeout, TransportIO
from .scgitransport import SCGITransport

logger = logging.getLogger(__name__)

DEFAULT_RTORRENT_CONFIG = '~/.rtorrent.rc'

SCGI_CONFIG_RE = re.compile(r'^\s*(?:scgi_|network\.scgi\.open_)(port|local)\s*=\s*(.+?)\s*$', re.MULTILINE)

def resolve_address(config_path=DEFAULT_RTORRENT_CONFIG):
    """
    Finds the scgi address in an rtorrent config file and returns it as a scgi:// url.
    """
    config_path = os.path.expanduser(config_path)
    try:
        with open(config_path, 'r') as f:
            config_data = f.read()
    except OSError as e:
        raise NoScgiPort('Unable to read rtorrent config %s: %s' % (config_path, e))

    scgi_info = SCGI_CONFIG_RE.findall(config_data)
    if not scgi_info:
        raise NoScgiPort('No scgi_port found in %s' % config_path)

    scgi_method, scgi_address = scgi_info[0]
    scgi_address = scgi_address.strip('"\'')
    if scgi_method == 'local':
        return 'scgi://%s' % os.path.abspath(os.path.expanduser(scgi_address))

    host, _, port = scgi_address.rpartition(':')
    if not port.isdigit():
        raise NoScgiPort('Invalid scgi_port %r in %s' % (scgi_address, config_path))

    return 'scgi://%s:%s' % (host or '127.0.0.1', port)

class HTTPTransport(object):
    def __init__(self, url, timeout=None):
        """
        Transport for rtorrent XMLRPC behind a web server, e.g. http://127.0.0.1/RPC2
        """
        self.url = url
        self.timeout = timeout

    def __repr__(self):
        return '<HTTPTransport %s>' % self.url

    def request(self, request_body):
        try:
            r = requests.post(self.url, data=request_body, headers={'Content-Type': 'text/xml'}, timeout=self.timeout)
        except requests.Timeout:
            raise Timeout('Timed out talking to %s' % self.url)
        except requests.ConnectionError as e:
            raise ConnectFailed('Unable to connect to %s: %s' % (self.url, e))
        except requests.RequestException as e:
            raise TransportIO(str(e))

        if r.status_code != 200:
            raise BadStatus(r.status_code)

        return r.content

def create_transport(url, timeout=None):
    """
    Creates a transport from a url. Supported are scgi://host:port, scgi:///path/to/socket and http(s)://
    """
    parsed = urlsplit(url)
    proto = url.split(':')[0].lower()
    if proto == 'scgi':
        if parsed.netloc:
            if parsed.port is None:
                raise ValueError('Missing port in %r' % url)
            logger.debug('Creating SCGI transport with url %r' % url)
            return SCGITransport(host=parsed.hostname, port=parsed.port, timeout=timeout)
        else:
            logger.debug('Creating SCGI socket transport with socket file %r' % parsed.path)
            return SCGITransport(socket_path=parsed.path, timeout=timeout)
    elif proto in ('http', 'https'):
        logger.debug('Creating HTTP transport with url %r' % url)
        return HTTPTransport(url, timeout=timeout)
    else:
        raise ValueError('Unsupported url %r' % url)

class Relay(object):
    def __init__(self, url=None, config_path=DEFAULT_RTORRENT_CONFIG, timeout=None):
        """
        Initializes a relay to rtorrent.

        url - Where rtorrent can be reached, if empty the address is read from config_path on every call.
        config_path - The rtorrent config file with the scgi_port or scgi_local setting.
        timeout - Seconds a single call may take.
        """
        self.url = url
        self.config_path = config_path
        self.timeout = timeout
        if url:
            create_transport(url, timeout) # fail early on bad urls

    def get_transport(self):
        url = self.url or resolve_address(self.config_path)
        return create_transport(url, self.timeout)

    def request(self, xml):
        """
        Sends an XMLRPC document and returns the response document, raises RelayError on failure.
        """
        transport = self.get_transport()
        logger.debug('Sending request with %r' % (transport, ))
        response = transport.request(xml.encode('utf-8'))

        try:
            return response.decode('utf-8')
        except UnicodeDecodeError:
            raise TransportIO('Response from %r is not valid UTF-8' % (transport, ))

    def rtorrent_rpc(self, xml):
        """
        Relays an XMLRPC document to rtorrent.

        Always returns either {'xml': response} or {'error': message, 'kind': kind}.
        """
        try:
            return {'xml': self.request(xml)}
        except RelayError as e:
            logger.info('Relay call failed: %s' % e)
            return e.to_dict()
        except Exception as e:
            logger.exception('Unexpected error while relaying call')
            return {'error': str(e), 'kind': RelayError.kind}
