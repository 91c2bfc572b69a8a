import logging
import re

__all__ = [
    'to_camel_case',
    'multicall_method',
    'normalize_command',
    'build_multicall',
    'remap_multicall',
    'build_batchcall',
    'remap_batchcall',
]

logger = logging.getLogger(__name__)

NAMESPACE_RE = re.compile(r'^[a-z]\.')
SEPARATOR_RE = re.compile(r'[.,_=\s]+(.)?')

def to_camel_case(command):
    """
    Turns an rtorrent command into a field name, e.g. t.get_url= into getUrl.
    """
    command = NAMESPACE_RE.sub('', command.lower())
    return SEPARATOR_RE.sub(lambda m: (m.group(1) or '').upper(), command)

def multicall_method(method_type):
    if method_type == 'd.':
        return 'd.multicall2'
    return method_type + 'multicall'

def normalize_command(method_type, command):
    """
    Makes sure a command is namespaced and ends with = when it takes no arguments.
    """
    if not command.startswith(method_type):
        command = method_type + command
    if '=' not in command:
        command += '='
    return command

def build_multicall(method_type, hash, filter, *commands):
    """
    Creates the method and params for running commands against every item matched
    by hash and filter, e.g. all torrents in a view or all files in a torrent.
    """
    method = multicall_method(method_type)
    params = [hash, filter] + [normalize_command(method_type, cmd) for cmd in commands]
    logger.debug('Built multicall %s with params %r' % (method, params))
    return method, params

def remap_multicall(commands, rows):
    """
    Turns the rows of a multicall into dicts keyed by the camel cased commands.
    """
    keys = [to_camel_case(cmd) for cmd in commands]
    return [dict(zip(keys, row)) for row in rows]

def build_batchcall(method_type, hash, *commands):
    """
    Creates a system.multicall running different commands against a single item.

    A command like d.custom=foo,bar sends foo and bar as extra params.
    """
    methods = []
    for cmd in commands:
        name, sep, values = cmd.partition('=')
        params = [hash]
        if sep:
            params.extend(values.split(','))
        if not name.startswith(method_type):
            name = method_type + name
        methods.append({'methodName': name, 'params': params})

    logger.debug('Built batchcall with %i methods' % len(methods))
    return 'system.multicall', [methods]

def remap_batchcall(commands, results):
    """
    Maps the system.multicall results back to the commands, unwrapping single values.
    """
    remapped = {}
    for cmd, result in zip(commands, results):
        if isinstance(result, list) and len(result) == 1:
            result = result[0]
        remapped[to_camel_case(cmd)] = result
    return remapped
