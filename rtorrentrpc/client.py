import logging
import os

from .exceptions import RelayError, error_from_dict
from .multicall import build_batchcall, build_multicall, remap_batchcall, remap_multicall
from .relay import DEFAULT_RTORRENT_CONFIG, Relay, resolve_address
from .xmlrpc import build_call, parse_response

logger = logging.getLogger(__name__)

class RTorrentClient(object):
    identifier = 'rtorrent'

    def __init__(self, relay):
        """
        Initializes a new rtorrent client.

        relay - anything with an rtorrent_rpc(xml) method returning {'xml': ...} or {'error': ...}.
        """
        self.relay = relay

    @classmethod
    def from_config(cls, url=None, rtorrent_config=DEFAULT_RTORRENT_CONFIG, timeout=None):
        return cls(Relay(url=url or None, config_path=rtorrent_config, timeout=timeout))

    def get_config(self):
        """
        Get the current configuration that can be used in the rtorrentrpc config file
        """
        return {
            'url': self.relay.url or '',
            'rtorrent_config': self.relay.config_path,
            'timeout': '' if self.relay.timeout is None else str(self.relay.timeout),
        }

    @classmethod
    def auto_config(cls, config_path=DEFAULT_RTORRENT_CONFIG):
        """
        Tries to auto configure using the .rtorrent.rc config file
        """
        expanded_path = os.path.expanduser(config_path)
        if not os.path.isfile(expanded_path):
            logger.debug('rtorrent config file was not found')
            return

        if not os.access(expanded_path, os.R_OK):
            logger.debug('Unable to access rtorrent config file at %s' % expanded_path)
            return

        try:
            url = resolve_address(config_path)
        except RelayError:
            logger.debug('No scgi info found in configuration file')
            return

        logger.debug('Creating auto-detected rtorrent client with info url:%s' % url)
        return cls(Relay(config_path=config_path))

    def call(self, method, *params):
        """
        Calls an rtorrent method and returns the decoded result.

        Transport problems are raised as RelayError subclasses, faults as Fault.
        """
        logger.debug('Calling %s with params %r' % (method, params))
        response = self.relay.rtorrent_rpc(build_call(method, params))
        if 'error' in response:
            raise error_from_dict(response)

        return parse_response(response['xml'])

    def multicall(self, method_type, hash, filter, *commands):
        """
        Runs commands against every item matched, returns one dict per item.

        method_type is the namespace, e.g. d. for downloads or t. for trackers.
        """
        method, params = build_multicall(method_type, hash, filter, *commands)
        return remap_multicall(commands, self.call(method, *params))

    def batchcall(self, method_type, hash, *commands):
        """
        Runs different commands against a single item, returns a dict with all the results.
        """
        method, params = build_batchcall(method_type, hash, *commands)
        return remap_batchcall(commands, self.call(method, *params))

    def test_connection(self):
        """
        Tests the connection, returns cwd and pid if found.
        """
        methods = self.call('system.listMethods')
        assert 'd.multicall2' in methods
        return 'cwd:%r, pid:%r' % (self.call('system.cwd'), self.call('system.pid'))

    def get_torrents(self):
        """
        Returns a set of info hashes currently added to rtorrent.
        """
        logger.info('Getting a list of torrent hashes')
        return set(x.lower() for x in self.call('download_list'))
