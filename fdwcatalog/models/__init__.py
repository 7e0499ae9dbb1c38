from fdwcatalog.models.remote_server import RemoteServer, RemoteServerType
from fdwcatalog.models.remote_table import RemoteTable

__all__ = ["RemoteServer", "RemoteServerType", "RemoteTable"]
