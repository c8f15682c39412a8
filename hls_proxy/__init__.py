from hls_proxy.codec import build_proxy_url, decode_target, encode_target
from hls_proxy.proxy import HLSProxyMiddleware

__all__ = ["HLSProxyMiddleware", "build_proxy_url", "decode_target", "encode_target"]
