from smslink_liveupdate.live_update import LiveUpdateClient
from smslink_liveupdate.transports import Transport, TransportMode


class SpyTransport(Transport):
    """Transport that records calls and answers with a fixed body"""

    label = "spy"

    def __init__(self, body: str = "MESSAGE;1;OK;", mode: TransportMode = TransportMode.QUERY_GET):
        super().__init__()
        self.mode = mode
        self.body = body
        self.calls = []

    def execute(self, url, params):
        self.calls.append((url, dict(params)))
        return self.body


def make_client(body: str = "MESSAGE;1;OK;"):
    spy = SpyTransport(body)
    client = LiveUpdateClient("MyConnectionID", "MyPassword", transports={TransportMode.QUERY_GET: spy})
    return client, spy
