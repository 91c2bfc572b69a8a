class RTorrentRPCError(Exception):
    pass

class RelayError(RTorrentRPCError):
    """
    Raised when the document could not be delivered to or read back from rtorrent.

    kind identifies the failing stage and survives the trip across the relay boundary.
    """
    kind = 'TransportIo'

    def to_dict(self):
        return {'error': str(self), 'kind': self.kind}

class ConfigMissing(RelayError):
    kind = 'ConfigMissing'

class NoScgiPort(ConfigMissing):
    pass

class ConnectFailed(RelayError):
    kind = 'ConnectFailed'

class TransportIO(RelayError):
    kind = 'TransportIo'

class MalformedHeader(RelayError):
    kind = 'MalformedHeader'

class Timeout(RelayError):
    kind = 'Timeout'

class BadStatus(RelayError):
    kind = 'BadStatus'

    def __init__(self, code, message=None):
        self.code = code
        RelayError.__init__(self, message or 'Wrong response code %r' % (code, ))

    def to_dict(self):
        result = RelayError.to_dict(self)
        result['code'] = self.code
        return result

class DecodeError(RTorrentRPCError):
    pass

class Fault(RTorrentRPCError):
    def __init__(self, fault_code, fault_string, fault=None):
        self.fault_code = fault_code
        self.fault_string = fault_string
        self.fault = fault if fault is not None else {'faultCode': fault_code, 'faultString': fault_string}
        RTorrentRPCError.__init__(self, 'Fault %r: %s' % (fault_code, fault_string))

ERROR_KINDS = dict((cls.kind, cls) for cls in [ConfigMissing, ConnectFailed, TransportIO, MalformedHeader, Timeout])

def error_from_dict(response):
    """
    Turns an error dict returned by the relay back into the matching exception.
    """
    kind = response.get('kind')
    message = response.get('error', '')
    if kind == BadStatus.kind:
        return BadStatus(response.get('code'), message)
    return ERROR_KINDS.get(kind, RelayError)(message)
