from rsspot_exporter.http.transport import SpotTransport, TokenProvider

__all__ = ["SpotTransport", "TokenProvider"]
