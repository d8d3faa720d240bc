from .hls_proxy import HlsProxyUseCase

__all__ = ["HlsProxyUseCase"]
