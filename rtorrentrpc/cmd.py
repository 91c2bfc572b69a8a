import argparse
import configparser
import json
import logging
import os
import shutil
import sys

from rtorrentrpc.client import RTorrentClient
from rtorrentrpc.exceptions import DecodeError, Fault, RelayError
from rtorrentrpc.relay import DEFAULT_RTORRENT_CONFIG, Relay

LIST_COMMANDS = ['d.hash=', 'd.name=', 'd.size_bytes=', 'd.complete=', 'd.state=']

def parse_param(value):
    """
    Command line params are sent as strings unless they look like integers.
    """
    try:
        return int(value)
    except ValueError:
        return value

def load_config(config_file):
    config = configparser.ConfigParser()
    config.read(config_file)

    options = {'url': None, 'rtorrent_config': DEFAULT_RTORRENT_CONFIG, 'timeout': None}
    if config.has_section('client'):
        if config.get('client', 'url', fallback=''):
            options['url'] = config.get('client', 'url')
        options['rtorrent_config'] = config.get('client', 'rtorrent_config', fallback=DEFAULT_RTORRENT_CONFIG)
        if config.get('client', 'timeout', fallback=''):
            options['timeout'] = config.getfloat('client', 'timeout')
    return options

def create_config(config_file):
    src = os.path.join(os.path.dirname(__file__), 'rtorrentrpc.conf.dist')
    shutil.copy(src, config_file)
    print('Created configuration file %r' % config_file)

    client = RTorrentClient.auto_config()
    if client is None:
        print('Unable to auto-detect rtorrent, you will have to configure it manually.')
        return

    config = configparser.ConfigParser()
    config.read(config_file)
    for k, v in client.get_config().items():
        config.set('client', k, v)

    with open(config_file, 'w') as f:
        config.write(f)
    print('Auto-configured rtorrent from %s' % client.relay.config_path)

def relay_stdin(relay):
    """
    Reads {"xml": ...} from stdin and writes the relay result as json to stdout.
    """
    try:
        request = json.load(sys.stdin)
        xml = request['xml']
    except (ValueError, KeyError, TypeError):
        result = {'error': 'Expected a json object with an xml document'}
    else:
        result = relay.rtorrent_rpc(xml)

    print(json.dumps(result))

def commandline_handler():
    parser = argparse.ArgumentParser()
    parser.add_argument("-c", "--config", dest="config_file", default="rtorrentrpc.conf", help="Path to config file")
    parser.add_argument("--create_config", dest="create_config_file", nargs='?', const='rtorrentrpc.conf', default=None, help="Creates a new configuration file")
    parser.add_argument("-u", "--url", dest="url", default=None, help="Url of rtorrent, e.g. scgi://127.0.0.1:5000 (overrides config)")

    parser.add_argument("-t", "--test_connection", action="store_true", dest="test_connection", default=False, help='Tests the connection to rtorrent')
    parser.add_argument("-l", "--list", dest="list_view", nargs='?', const='main', default=None, help='List torrents in a view')
    parser.add_argument("--call", dest="call", nargs='+', default=None, metavar=('METHOD', 'PARAM'), help='Call a method and print the result as json')
    parser.add_argument("--relay", action="store_true", dest="relay", default=False, help='Relay a json encoded xml document from stdin')
    parser.add_argument("--verbose", help="increase output verbosity", action="store_true", dest="verbose")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.ERROR)

    if args.create_config_file:
        if os.path.exists(args.create_config_file):
            parser.error("Target %r already exists, not creating" % args.create_config_file)
        create_config(args.create_config_file)
        return

    options = load_config(args.config_file)
    if args.url:
        options['url'] = args.url

    try:
        relay = Relay(url=options['url'], config_path=options['rtorrent_config'], timeout=options['timeout'])
    except ValueError as e:
        parser.error(str(e))

    if args.relay:
        relay_stdin(relay)
        return

    client = RTorrentClient(relay)

    try:
        if args.test_connection:
            result = client.test_connection()
            print('Connected to rtorrent successfully!')
            print('  result: %s' % result)

        if args.list_view:
            for torrent in client.multicall('d.', '', args.list_view, *LIST_COMMANDS):
                print('%s %s %s bytes complete:%s state:%s' % (torrent['hash'], torrent['name'], torrent['sizeBytes'],
                                                               torrent['complete'], torrent['state']))

        if args.call:
            method, params = args.call[0], [parse_param(p) for p in args.call[1:]]
            print(json.dumps(client.call(method, *params), indent=2, default=str))
    except RelayError as e:
        print('rtorrent is unavailable (%s): %s' % (e.kind, e))
        sys.exit(1)
    except (Fault, DecodeError) as e:
        print('rtorrent returned an unusable response: %s' % e)
        sys.exit(1)

if __name__ == '__main__':
    commandline_handler()
