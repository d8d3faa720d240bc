from .upstream import UpstreamFetcherPort

__all__ = ["UpstreamFetcherPort"]
